"""
Value transfers out of the ledger: refunds and owner withdrawals.
"""
from .base import TransferFailed, TransferGateway, TransferReceipt
from .factory import create_transfer_gateway, get_transfer_gateway
from .http import HttpTransferGateway
from .memory import InMemoryTransferGateway

__all__ = [
    "TransferFailed",
    "TransferGateway",
    "TransferReceipt",
    "create_transfer_gateway",
    "get_transfer_gateway",
    "HttpTransferGateway",
    "InMemoryTransferGateway",
]
