"""EMI provider reference-data client"""

from decimal import Decimal, InvalidOperation
from typing import List

from checkout_sdk.domain.exceptions import GatewayAPIError, InvalidInputError
from checkout_sdk.domain.models import EMIProvider
from checkout_sdk.infrastructure.clients.base import BackendClient


class EMIProviderClient(BackendClient):
    """Client for EMI lender tenure/rate tables"""

    async def get_providers(self) -> List[EMIProvider]:
        """
        Fetch every EMI provider, enabled or not.

        Raises:
            GatewayAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._request("get_emi_providers", "GET", "/v1/emi/providers")

        try:
            return [
                EMIProvider(
                    id=row["id"],
                    name=row["name"],
                    min_amount=Decimal(str(row["min_amount"])),
                    max_amount=Decimal(str(row["max_amount"])),
                    supported_tenures=tuple(int(t) for t in row["supported_tenures"]),
                    interest_rates={int(t): Decimal(str(r)) for t, r in row["interest_rates"].items()},
                    processing_fee=Decimal(str(row.get("processing_fee", 0))),
                    enabled=bool(row.get("enabled", True)),
                )
                for row in data.get("providers", [])
            ]
        except (KeyError, ValueError, TypeError, InvalidOperation, InvalidInputError) as e:
            raise GatewayAPIError(f"Invalid EMI provider data from backend: {e}") from e
