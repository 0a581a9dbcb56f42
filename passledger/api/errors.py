"""
Маппинг ошибок леджера в HTTP-ответы: {"detail": ..., "error": <code>}.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from passledger.services.ledger.errors import (
    InsufficientPayment,
    LedgerAlreadyDeployed,
    LedgerError,
    LedgerNotDeployed,
    OnlyOwner,
    ReentrantCall,
    RefundFailed,
    WithdrawalFailed,
)

STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    InsufficientPayment: status.HTTP_402_PAYMENT_REQUIRED,
    OnlyOwner: status.HTTP_403_FORBIDDEN,
    RefundFailed: status.HTTP_502_BAD_GATEWAY,
    WithdrawalFailed: status.HTTP_502_BAD_GATEWAY,
    ReentrantCall: status.HTTP_409_CONFLICT,
    LedgerNotDeployed: status.HTTP_503_SERVICE_UNAVAILABLE,
    LedgerAlreadyDeployed: status.HTTP_409_CONFLICT,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content={"detail": str(exc), "error": exc.code})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
