"""
Base types for value transfers (refund of excess payment, owner withdrawal).
Used by the ledger service and the gateway factory.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class TransferReceipt:
    """Completed outgoing transfer."""
    recipient: str
    amount: int
    reference: str | None = None


class TransferFailed(Exception):
    """Raised when the recipient rejects the transfer or the backend is unavailable."""
    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.detail = detail or {}


class TransferGateway(ABC):
    """Base class for transfer backends. send() either completes or raises TransferFailed."""

    @abstractmethod
    def send(self, recipient: str, amount: int) -> TransferReceipt:
        """Move amount to recipient."""
        pass
