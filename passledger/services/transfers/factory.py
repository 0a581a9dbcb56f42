"""
Factory for the transfer gateway selected by settings.transfer_backend.
"""
import functools
import logging

from passledger.core.config import settings
from passledger.services.transfers.base import TransferGateway
from passledger.services.transfers.http import HttpTransferGateway
from passledger.services.transfers.memory import InMemoryTransferGateway

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "http")


def create_transfer_gateway(backend: str) -> TransferGateway:
    """
    Create gateway by backend name.

    Raises:
        ValueError: If backend name is unknown
    """
    name = backend.lower()
    if name == "memory":
        gateway: TransferGateway = InMemoryTransferGateway()
    elif name == "http":
        gateway = HttpTransferGateway(
            settings.payout_api_url,
            api_key=settings.payout_api_key,
            timeout=settings.http_client_timeout,
        )
    else:
        raise ValueError(f"Unknown transfer backend: {backend}. Available backends: {', '.join(BACKENDS)}")
    logger.info(f"Creating transfer gateway: {name}")
    return gateway


@functools.lru_cache(maxsize=1)
def get_transfer_gateway() -> TransferGateway:
    """Process-wide gateway (in-memory backend keeps its transfer history here)."""
    return create_transfer_gateway(settings.transfer_backend)
