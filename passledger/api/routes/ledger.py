"""
Ledger admin API: price, duration, withdraw (owner only) and public balance/config/events.
"""
from fastapi import APIRouter, Depends, Query

from passledger.api.deps import get_caller, get_ledger
from passledger.schemas.ledger import (
    BalanceOut,
    DurationOut,
    LedgerConfigOut,
    LedgerEventOut,
    PriceOut,
    UpdateDurationRequest,
    UpdatePriceRequest,
    WithdrawOut,
)
from passledger.services.ledger.service import PassLedgerService

router = APIRouter(prefix="/ledger", tags=["ledger"])


# ---------- Owner only ----------
@router.put("/price", response_model=PriceOut)
def update_price(
    body: UpdatePriceRequest,
    caller: str = Depends(get_caller),
    ledger: PassLedgerService = Depends(get_ledger),
):
    return PriceOut(pass_price=ledger.update_price(caller, body.new_price))


@router.put("/duration", response_model=DurationOut)
def update_duration(
    body: UpdateDurationRequest,
    caller: str = Depends(get_caller),
    ledger: PassLedgerService = Depends(get_ledger),
):
    return DurationOut(pass_duration=ledger.update_duration(caller, body.new_duration_days))


@router.post("/withdraw", response_model=WithdrawOut)
def withdraw(
    caller: str = Depends(get_caller),
    ledger: PassLedgerService = Depends(get_ledger),
):
    amount = ledger.withdraw(caller)
    return WithdrawOut(owner_id=caller, amount=amount)


# ---------- Public reads ----------
@router.get("/balance", response_model=BalanceOut)
def get_balance(ledger: PassLedgerService = Depends(get_ledger)):
    return BalanceOut(balance=ledger.get_balance())


@router.get("/config", response_model=LedgerConfigOut)
def get_config(ledger: PassLedgerService = Depends(get_ledger)):
    snap = ledger.get_config()
    return LedgerConfigOut(
        owner_id=snap.owner_id,
        pass_price=snap.pass_price,
        pass_duration=snap.pass_duration,
        balance=snap.balance,
    )


@router.get("/events", response_model=list[LedgerEventOut])
def list_events(
    limit: int = Query(50, ge=1, le=500),
    event_type: str | None = None,
    ledger: PassLedgerService = Depends(get_ledger),
):
    return ledger.list_events(limit=limit, event_type=event_type)
