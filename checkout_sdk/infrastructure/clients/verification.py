"""MPIN/OTP verification client"""

from checkout_sdk.domain.exceptions import GatewayAPIError
from checkout_sdk.domain.models import AuthorizationChannel
from checkout_sdk.infrastructure.clients.base import BackendClient


class VerificationClient(BackendClient):
    """Client for the backend's secret verification endpoint, bound to one customer"""

    def __init__(self, *args, customer_id: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.customer_id = customer_id

    async def verify_secret(self, channel: AuthorizationChannel, secret: str) -> bool:
        """
        Ask the backend whether the secret matches.

        A mismatch is a normal False; only transport problems raise.

        Raises:
            GatewayAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._request(
            "verify_secret",
            "POST",
            "/v1/verify",
            json={"channel": channel.value, "secret": secret, "customer_id": self.customer_id},
        )
        verified = data.get("verified")
        if not isinstance(verified, bool):
            raise GatewayAPIError("Invalid verification response from backend")
        return verified
