"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, HTTPException, Request

from checkout_sdk.api.sessions import CheckoutFactory, CheckoutSession, SessionRegistry
from checkout_sdk.infrastructure.clients.catalog import CatalogClient
from checkout_sdk.infrastructure.clients.emi_providers import EMIProviderClient
from checkout_sdk.infrastructure.clients.gateway import PaymentGatewayClient
from checkout_sdk.infrastructure.clients.verification import VerificationClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_emi_provider_source() -> EMIProviderClient:
    """Provide EMI provider reference-data client"""
    return EMIProviderClient()


def get_checkout_factory(
    provider_source: EMIProviderClient = Depends(get_emi_provider_source),
) -> CheckoutFactory:
    """Provide the factory that builds one orchestrator per checkout session"""
    return CheckoutFactory(
        catalog=CatalogClient(),
        processor=PaymentGatewayClient(),
        provider_source=provider_source,
        verifier_for=lambda customer_id: VerificationClient(customer_id=customer_id),
    )


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session(session_id: str, registry: SessionRegistry = Depends(get_session_registry)) -> CheckoutSession:
    """Resolve the checkout session named in the path"""
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Checkout session not found")
    return session
