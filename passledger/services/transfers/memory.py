import logging
from typing import Callable
from uuid import uuid4

from passledger.services.transfers.base import TransferFailed, TransferGateway, TransferReceipt

logger = logging.getLogger(__name__)


class InMemoryTransferGateway(TransferGateway):
    """
    Records transfers in process memory. Local runs and tests.

    reject(recipient) makes every later send() to that recipient fail;
    on_send hook runs before the transfer is recorded (it receives control
    like a recipient would, e.g. to attempt a nested ledger call).
    """

    def __init__(self, on_send: Callable[[str, int], None] | None = None) -> None:
        self.sent: list[TransferReceipt] = []
        self._rejected: set[str] = set()
        self.on_send = on_send

    def reject(self, recipient: str) -> None:
        self._rejected.add(recipient)

    def accept(self, recipient: str) -> None:
        self._rejected.discard(recipient)

    def total_to(self, recipient: str) -> int:
        return sum(r.amount for r in self.sent if r.recipient == recipient)

    def send(self, recipient: str, amount: int) -> TransferReceipt:
        if self.on_send is not None:
            self.on_send(recipient, amount)
        if recipient in self._rejected:
            raise TransferFailed("Recipient rejected transfer", {"recipient": recipient, "amount": amount})
        receipt = TransferReceipt(recipient=recipient, amount=amount, reference=str(uuid4()))
        self.sent.append(receipt)
        logger.info("transfer_recorded", extra={"recipient": recipient, "amount": amount})
        return receipt
