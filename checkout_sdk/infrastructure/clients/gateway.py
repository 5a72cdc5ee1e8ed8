"""Payment processing client with exponential backoff retry logic"""

import asyncio
import logging
import uuid
from typing import Any, Dict

import httpx

from checkout_sdk.config import settings
from checkout_sdk.domain.exceptions import GatewayAPIError
from checkout_sdk.domain.models import GatewayResponse, PaymentMethodType, PaymentStatus
from checkout_sdk.infrastructure.clients.base import BackendClient


class PaymentGatewayClient(BackendClient):
    """Client for submitting payments to the backend"""

    def __init__(self, *args, max_retries: int | None = None, backoff_base: float | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_retries = settings.payment_max_retries if max_retries is None else max_retries
        self.backoff_base = settings.payment_backoff_base if backoff_base is None else backoff_base

    @staticmethod
    def _is_retryable(error: GatewayAPIError) -> bool:
        cause = error.__cause__
        if isinstance(cause, httpx.TransportError):
            return True
        return isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code >= 500

    async def process_payment(self, method_type: PaymentMethodType, payload: Dict[str, Any]) -> GatewayResponse:
        """
        Submit a payment with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base ... (base^attempt)
        - Retries on 5xx errors and transport failures, never on 4xx or an
          unreadable response the backend may already have processed
        - Every retry reuses one Idempotency-Key so the backend charges once

        Raises:
            GatewayAPIError: After the last failed attempt, or on a 4xx / malformed response
        """
        idempotency_key = str(uuid.uuid4())
        body = {"method_type": method_type.value, "payload": payload}
        attempt = 0

        while True:
            try:
                data = await self._request(
                    "process_payment",
                    "POST",
                    "/v1/payments",
                    json=body,
                    headers={"Idempotency-Key": idempotency_key},
                )
                break
            except GatewayAPIError as e:
                attempt += 1
                if attempt >= self.max_retries or not self._is_retryable(e):
                    raise

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(
                    f"Payment submission failed, retrying in {backoff}s: {e}",
                    extra={"order_id": payload.get("order_id"), "attempt": attempt},
                )
                await asyncio.sleep(backoff)

        try:
            return GatewayResponse(
                status=PaymentStatus(data["status"]),
                transaction_id=data.get("transaction_id"),
                message=data.get("message"),
            )
        except (KeyError, ValueError) as e:
            raise GatewayAPIError(f"Invalid payment response from backend: {e}") from e
