"""Payment method and saved-card lookup client"""

from typing import List, Optional

from checkout_sdk.domain.exceptions import GatewayAPIError
from checkout_sdk.domain.models import PaymentMethod, PaymentMethodType, SavedCard
from checkout_sdk.infrastructure.clients.base import BackendClient


class CatalogClient(BackendClient):
    """Client for the backend's payment method catalog"""

    async def list_methods(self, customer_id: Optional[str] = None) -> List[PaymentMethod]:
        """
        Fetch payment methods offered to a customer (or to guests).

        Raises:
            GatewayAPIError: On timeout, HTTP errors, or invalid response
        """
        params = {"customer_id": customer_id} if customer_id else None
        data = await self._request("list_methods", "GET", "/v1/payment-methods", params=params)

        try:
            return [
                PaymentMethod(
                    id=row["id"],
                    type=PaymentMethodType(row["type"]),
                    name=row["name"],
                    enabled=bool(row.get("enabled", True)),
                    description=row.get("description"),
                )
                for row in data.get("methods", [])
            ]
        except (KeyError, ValueError, TypeError) as e:
            raise GatewayAPIError(f"Invalid payment method data from backend: {e}") from e

    async def list_saved_cards(self, customer_id: str) -> List[SavedCard]:
        """
        Fetch tokenized cards on file for a customer.

        Raises:
            GatewayAPIError: On timeout, HTTP errors, or invalid response
        """
        data = await self._request("list_saved_cards", "GET", f"/v1/customers/{customer_id}/saved-cards")

        try:
            return [
                SavedCard(
                    token_id=row["token_id"],
                    last4=row["last4"],
                    brand=row["brand"],
                    expiry_month=str(row["expiry_month"]),
                    expiry_year=str(row["expiry_year"]),
                    holder_name=row.get("holder_name"),
                )
                for row in data.get("cards", [])
            ]
        except (KeyError, ValueError, TypeError) as e:
            raise GatewayAPIError(f"Invalid saved card data from backend: {e}") from e
