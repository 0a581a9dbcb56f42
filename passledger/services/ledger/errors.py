"""
Ошибки леджера. У каждой стабильный code — его отдаёт API и пишет лог.
"""


class LedgerError(Exception):
    """Base class; subclasses set code and a default message."""

    code = "ledger_error"
    default_message = "Ledger operation failed"

    def __init__(self, message: str | None = None, **detail):
        super().__init__(message or self.default_message)
        self.detail = detail


class InsufficientPayment(LedgerError):
    code = "InsufficientPayment"
    default_message = "Payment is below the pass price"


class OnlyOwner(LedgerError):
    code = "OnlyOwner"
    default_message = "Only the owner can call this operation"


class RefundFailed(LedgerError):
    code = "RefundFailed"
    default_message = "Refund of excess payment failed; purchase reverted"


class WithdrawalFailed(LedgerError):
    code = "WithdrawalFailed"
    default_message = "Withdrawal transfer failed; balance unchanged"


class ReentrantCall(LedgerError):
    code = "ReentrantCall"
    default_message = "Nested ledger call during a transfer is not allowed"


class LedgerNotDeployed(LedgerError):
    code = "LedgerNotDeployed"
    default_message = "Ledger is not deployed"


class LedgerAlreadyDeployed(LedgerError):
    code = "LedgerAlreadyDeployed"
    default_message = "Ledger is already deployed"
