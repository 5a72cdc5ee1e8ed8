"""Collaborator interfaces the checkout core depends on"""

from typing import Any, Dict, List, Optional, Protocol

from checkout_sdk.domain.models import (
    AuthorizationChannel,
    EMIProvider,
    GatewayResponse,
    PaymentMethod,
    PaymentMethodType,
    SavedCard,
)


class MethodCatalog(Protocol):
    """Payment method and saved-card lookup"""

    async def list_methods(self, customer_id: Optional[str] = None) -> List[PaymentMethod]: ...

    async def list_saved_cards(self, customer_id: str) -> List[SavedCard]: ...


class SecretVerifier(Protocol):
    """Checks an MPIN or OTP against the backend"""

    async def verify_secret(self, channel: AuthorizationChannel, secret: str) -> bool: ...


class PaymentProcessor(Protocol):
    """Submits a payment to the backend"""

    async def process_payment(
        self, method_type: PaymentMethodType, payload: Dict[str, Any]
    ) -> GatewayResponse: ...


class EMIProviderSource(Protocol):
    """EMI lender reference data"""

    async def get_providers(self) -> List[EMIProvider]: ...
