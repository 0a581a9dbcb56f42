from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class BuyPassRequest(BaseModel):
    payment: int = Field(..., ge=0, description="Сумма платежа в минимальных единицах валюты")


class PurchaseOut(BaseModel):
    buyer: str
    expires_at: int
    amount_paid: int
    refund: int
    extended: bool


class AccessOut(BaseModel):
    user_id: str
    has_access: bool


class TimeRemainingOut(BaseModel):
    user_id: str
    seconds_remaining: int


class UpdatePriceRequest(BaseModel):
    new_price: int = Field(..., ge=0)


class UpdateDurationRequest(BaseModel):
    new_duration_days: int = Field(..., ge=0)


class PriceOut(BaseModel):
    pass_price: int


class DurationOut(BaseModel):
    pass_duration: int  # секунды


class WithdrawOut(BaseModel):
    owner_id: str
    amount: int


class BalanceOut(BaseModel):
    balance: int


class LedgerConfigOut(BaseModel):
    owner_id: str
    pass_price: int
    pass_duration: int
    balance: int


class LedgerEventOut(BaseModel):
    id: str
    event_type: str
    actor_id: str | None = None
    block_ts: int
    payload: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}
