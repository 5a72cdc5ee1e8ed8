"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from typing import List
from fastapi.testclient import TestClient
from checkout_sdk.api.dependencies import get_checkout_factory, get_emi_provider_source
from checkout_sdk.api.main import create_app
from checkout_sdk.api.sessions import CheckoutFactory
from checkout_sdk.domain.handlers import build_handlers
from checkout_sdk.domain.models import EMIProvider, Order, PaymentMethod, PaymentMethodType, SavedCard
from checkout_sdk.domain.orchestrator import CheckoutOrchestrator
from tests.fakes import FakeCatalog, FakeProcessor, FakeProviderSource, FakeVerifier, make_provider


@pytest.fixture
def payment_methods() -> List[PaymentMethod]:
    return [
        PaymentMethod("card", PaymentMethodType.CARD, "Cards"),
        PaymentMethod("upi", PaymentMethodType.UPI, "UPI"),
        PaymentMethod("netbanking", PaymentMethodType.NETBANKING, "Net Banking"),
        PaymentMethod("wallet", PaymentMethodType.WALLET, "Wallets"),
        PaymentMethod("bnpl", PaymentMethodType.BNPL, "Buy Now, Pay Later"),
        PaymentMethod("fxdebitcard", PaymentMethodType.FX_DEBIT_CARD, "FX Debit Card"),
        PaymentMethod("paylater_legacy", PaymentMethodType.BNPL, "Pay Later (legacy)", enabled=False),
    ]


@pytest.fixture
def saved_cards() -> List[SavedCard]:
    return [
        SavedCard("tok_visa_4242", "4242", "visa", "12", "2099", "Asha Rao"),
        SavedCard("tok_mc_0005", "0005", "mastercard", "01", "2020", "Asha Rao"),
    ]


@pytest.fixture
def providers() -> List[EMIProvider]:
    return [
        make_provider(),
        make_provider(
            id="icici-emi",
            name="ICICI Bank",
            max_amount=Decimal("300000"),
            supported_tenures=(3, 6),
            interest_rates={3: Decimal("11"), 6: Decimal("12")},
            processing_fee=Decimal("149"),
        ),
    ]


@pytest.fixture
def catalog(payment_methods, saved_cards) -> FakeCatalog:
    return FakeCatalog(payment_methods, {"cust_saved": saved_cards})


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def provider_source(providers) -> FakeProviderSource:
    return FakeProviderSource(providers)


@pytest.fixture
def order() -> Order:
    return Order(order_id="order_1", amount=Decimal("10000"), customer_id="cust_saved")


@pytest.fixture
def orchestrator(catalog, processor, verifier, provider_source) -> CheckoutOrchestrator:
    handlers = build_handlers(processor, catalog, verifier, provider_source)
    return CheckoutOrchestrator(catalog, handlers)


@pytest.fixture
def client(catalog, processor, verifier, provider_source) -> TestClient:
    """Create FastAPI test client wired to in-memory collaborators"""
    app = create_app()

    def override_factory():
        return CheckoutFactory(
            catalog=catalog,
            processor=processor,
            provider_source=provider_source,
            verifier_for=lambda customer_id: verifier,
        )

    app.dependency_overrides[get_checkout_factory] = override_factory
    app.dependency_overrides[get_emi_provider_source] = lambda: provider_source
    return TestClient(app)
