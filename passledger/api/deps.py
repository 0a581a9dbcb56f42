"""
Зависимости API: идентификатор вызывающего и сервис леджера на запрос.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from passledger.core.config import settings
from passledger.db.session import get_db
from passledger.services.activity.service import ActivityLogService
from passledger.services.ledger.service import PassLedgerService
from passledger.services.transfers.base import TransferGateway
from passledger.services.transfers.factory import get_transfer_gateway


def get_caller(request: Request) -> str:
    caller = (request.headers.get(settings.caller_id_header) or "").strip()
    if not caller:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.caller_id_header} header",
        )
    return caller


def get_ledger(
    db: Session = Depends(get_db),
    transfers: TransferGateway = Depends(get_transfer_gateway),
) -> PassLedgerService:
    return PassLedgerService(db, transfers, activity=ActivityLogService(db))
