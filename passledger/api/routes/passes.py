"""
Пропуски: покупка и проверки доступа. /me/access объявлен до /{user_id}/...
"""
from fastapi import APIRouter, Depends

from passledger.api.deps import get_caller, get_ledger
from passledger.schemas.ledger import AccessOut, BuyPassRequest, PurchaseOut, TimeRemainingOut
from passledger.services.ledger.service import PassLedgerService

router = APIRouter(prefix="/passes", tags=["passes"])


@router.post("/buy", response_model=PurchaseOut)
def buy_pass(
    body: BuyPassRequest,
    caller: str = Depends(get_caller),
    ledger: PassLedgerService = Depends(get_ledger),
):
    receipt = ledger.buy_pass(caller, body.payment)
    return PurchaseOut(
        buyer=receipt.buyer,
        expires_at=receipt.expires_at,
        amount_paid=receipt.amount_paid,
        refund=receipt.refund,
        extended=receipt.extended,
    )


@router.get("/me/access", response_model=AccessOut)
def my_access(
    caller: str = Depends(get_caller),
    ledger: PassLedgerService = Depends(get_ledger),
):
    return AccessOut(user_id=caller, has_access=ledger.my_access(caller))


@router.get("/{user_id}/access", response_model=AccessOut)
def has_access(user_id: str, ledger: PassLedgerService = Depends(get_ledger)):
    return AccessOut(user_id=user_id, has_access=ledger.has_access(user_id))


@router.get("/{user_id}/remaining", response_model=TimeRemainingOut)
def time_remaining(user_id: str, ledger: PassLedgerService = Depends(get_ledger)):
    return TimeRemainingOut(user_id=user_id, seconds_remaining=ledger.get_time_remaining(user_id))
