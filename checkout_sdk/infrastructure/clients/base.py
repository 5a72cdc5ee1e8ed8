"""Shared httpx plumbing for payment backend clients"""

from typing import Any, Dict, Optional

import httpx

from checkout_sdk.config import settings
from checkout_sdk.domain.exceptions import GatewayAPIError
from checkout_sdk.infrastructure.observability.metrics import gateway_failure_counter, gateway_latency_histogram


class BackendClient:
    """Base for clients of the payment backend REST API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.gateway_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON body.

        Raises:
            GatewayAPIError: On timeout, HTTP errors, or a non-JSON response
        """
        async with self._client() as client:
            try:
                with gateway_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                gateway_failure_counter.labels(operation=operation).inc()
                raise GatewayAPIError(f"Payment backend timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                gateway_failure_counter.labels(operation=operation).inc()
                raise GatewayAPIError(f"Payment backend error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                gateway_failure_counter.labels(operation=operation).inc()
                raise GatewayAPIError(f"Payment backend unreachable: {e}") from e
            except ValueError as e:
                gateway_failure_counter.labels(operation=operation).inc()
                raise GatewayAPIError(f"Invalid response from payment backend: {e}") from e
