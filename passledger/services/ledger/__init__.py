"""
Леджер пропусков: покупка/продление, проверки доступа, owner-only администрирование.
"""
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
from passledger.services.ledger.service import (
    SECONDS_PER_DAY,
    LedgerSnapshot,
    PassLedgerService,
    PurchaseReceipt,
    bootstrap_ledger,
)

__all__ = [
    "SECONDS_PER_DAY",
    "LedgerSnapshot",
    "PassLedgerService",
    "PurchaseReceipt",
    "bootstrap_ledger",
    "LedgerError",
    "InsufficientPayment",
    "OnlyOwner",
    "RefundFailed",
    "WithdrawalFailed",
    "ReentrantCall",
    "LedgerNotDeployed",
    "LedgerAlreadyDeployed",
]
