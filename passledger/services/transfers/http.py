"""
HTTP payout backend: POST {payout_api_url}/transfers.
2xx = transfer done; anything else (including network errors) = TransferFailed.
"""
import logging
from uuid import uuid4

import httpx

from passledger.services.transfers.base import TransferFailed, TransferGateway, TransferReceipt

logger = logging.getLogger(__name__)


class HttpTransferGateway(TransferGateway):
    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, idempotency_key: str) -> dict[str, str]:
        headers = {"Idempotency-Key": idempotency_key}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def send(self, recipient: str, amount: int) -> TransferReceipt:
        key = str(uuid4())
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/transfers",
                    json={"recipient": recipient, "amount": amount},
                    headers=self._headers(key),
                )
        except httpx.HTTPError as e:
            logger.warning(
                "payout_transport_error",
                extra={"recipient": recipient, "amount": amount, "error": type(e).__name__},
            )
            raise TransferFailed(f"Payout backend unreachable: {e}", {"recipient": recipient}) from e

        if not response.is_success:
            logger.warning(
                "payout_rejected",
                extra={"recipient": recipient, "amount": amount, "status_code": response.status_code},
            )
            raise TransferFailed(
                f"Payout backend returned {response.status_code}",
                {"recipient": recipient, "status_code": response.status_code},
            )

        # 2xx = деньги ушли; тело ответа на результат не влияет
        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return TransferReceipt(recipient=recipient, amount=amount, reference=data.get("id") or key)
