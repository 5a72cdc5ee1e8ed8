"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from checkout_sdk.api.main import create_app
from checkout_sdk.domain.exceptions import GatewayAPIError
from tests.fakes import FakeCatalog


def start_checkout(client: TestClient, **overrides) -> dict:
    body = {"order_id": "order_1", "amount": 10000, "customer_id": "cust_saved"}
    body.update(overrides)
    response = client.post("/v1/checkout", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def select(client: TestClient, session_id: str, method_id: str) -> dict:
    response = client.post(f"/v1/checkout/{session_id}/method", json={"method_id": method_id})
    assert response.status_code == 200, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "checkout_payment_total" in response.text
    assert "checkout_authorization_lockouts_total" in response.text


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-abc"})
    assert response.headers["X-Request-ID"] == "req-abc"
    assert client.get("/health").headers["X-Request-ID"]


def test_emi_calculate(client: TestClient):
    response = client.post(
        "/v1/emi/calculate",
        json={"principal": 10000, "annual_rate_percent": 12, "tenure_months": 3},
    )

    assert response.status_code == 200
    assert response.json() == {
        "monthly_payment": "3400.22",
        "total_amount": "10200.66",
        "total_interest": "200.66",
    }


def test_emi_calculate_invalid_tenure(client: TestClient):
    response = client.post(
        "/v1/emi/calculate",
        json={"principal": 10000, "annual_rate_percent": 12, "tenure_months": 0},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_INPUT"


def test_emi_plans(client: TestClient):
    response = client.post("/v1/emi/plans", json={"amount": 10000})

    assert response.status_code == 200
    data = response.json()
    assert data["best_plan_id"] == "hdfc-emi_12"
    assert [p["plan_id"] for p in data["plans"]][0] == "hdfc-emi_12"
    assert len(data["plans"]) == 5


def test_emi_plans_below_minimum(client: TestClient):
    response = client.post("/v1/emi/plans", json={"amount": 500})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "NO_ELIGIBLE_PLANS"
    assert detail["reason"] == "too_small"
    assert detail["message"] == "Minimum EMI amount is ₹1,000"


def test_emi_validate_and_compare_round_trip(client: TestClient):
    plans = client.post("/v1/emi/plans", json={"amount": 10000}).json()["plans"]
    plan = next(p for p in plans if p["plan_id"] == "hdfc-emi_3")

    validated = client.post("/v1/emi/validate", json={"plan": plan})
    assert validated.json() == {"valid": True, "errors": []}

    compared = client.post("/v1/emi/compare", json={"amount": 10000, "plan": plan})
    assert compared.status_code == 200
    assert compared.json()["extra_cost"] == "299.66"
    assert compared.json()["extra_cost_percent"] == "3.00"


def test_emi_validate_tampered_plan(client: TestClient):
    plans = client.post("/v1/emi/plans", json={"amount": 10000}).json()["plans"]
    plan = dict(plans[0], emi_amount="1.00")

    response = client.post("/v1/emi/validate", json={"plan": plan})

    assert response.status_code == 200
    assert response.json()["valid"] is False


def test_emi_eligibility(client: TestClient):
    response = client.post("/v1/emi/eligibility", json={"amount": 10000, "credit_score": 600})

    assert response.json() == {"eligible": False, "reason": "Credit score too low for EMI (minimum 650)"}


def test_emi_schedule(client: TestClient):
    plans = client.post("/v1/emi/plans", json={"amount": 10000}).json()["plans"]
    plan = next(p for p in plans if p["plan_id"] == "hdfc-emi_3")

    response = client.post("/v1/emi/schedule", json={"plan": plan, "start_date": "2024-01-20"})

    assert response.status_code == 200
    data = response.json()
    assert data["plan_id"] == "hdfc-emi_3"
    assert [i["due_date"] for i in data["installments"]] == ["2024-02-05", "2024-03-05", "2024-04-05"]
    assert all(i["amount"] == "3400.22" for i in data["installments"])


def test_start_checkout(client: TestClient):
    data = start_checkout(client)

    assert data["current_step"] == "methods"
    assert data["mode"] == "quick"
    assert data["saved_card_count"] == 2
    assert [m["id"] for m in data["methods"]] == ["card", "upi", "netbanking", "wallet", "bnpl", "fxdebitcard"]
    assert data["session_id"]


def test_start_checkout_backend_down(client: TestClient, catalog: FakeCatalog):
    catalog.error = GatewayAPIError("Payment backend unreachable")

    response = client.post("/v1/checkout", json={"order_id": "order_1", "amount": 10000})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "INIT_FAILED"
    assert response.json()["detail"]["retryable"] is True


def test_start_checkout_rejects_bad_amount(client: TestClient):
    response = client.post("/v1/checkout", json={"order_id": "order_1", "amount": 0})
    assert response.status_code == 422


def test_upi_checkout_flow(client: TestClient, processor):
    session_id = start_checkout(client)["session_id"]

    selected = select(client, session_id, "upi")
    assert selected["accepted"] is True
    assert selected["state"]["current_step"] == "payment"

    options = client.get(f"/v1/checkout/{session_id}/options").json()
    assert options["method_type"] == "upi"
    assert options["details"]["modes"] == ["intent", "qr", "vpa"]
    assert {"id": "phonepe", "name": "PhonePe"} in options["options"]

    paid = client.post(
        f"/v1/checkout/{session_id}/pay",
        json={"method_data": {"mode": "vpa", "vpa": "asha@okhdfc"}},
    )
    assert paid.status_code == 200
    result = paid.json()
    assert result["status"] == "success"
    assert result["payment_id"] == "txn_123"
    assert result["amount"] == "10000.00"

    state = client.get(f"/v1/checkout/{session_id}").json()
    assert state["current_step"] == "result"
    assert state["last_result"]["payment_id"] == "txn_123"
    assert len(processor.calls) == 1


def test_pay_twice_is_a_conflict(client: TestClient):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "upi")
    client.post(f"/v1/checkout/{session_id}/pay", json={"method_data": {"mode": "qr"}})

    response = client.post(f"/v1/checkout/{session_id}/pay", json={"method_data": {"mode": "qr"}})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "INVALID_STATE"


def test_invalid_method_input_returns_failure_result(client: TestClient):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "upi")

    response = client.post(f"/v1/checkout/{session_id}/pay", json={"method_data": {"mode": "vpa", "vpa": "bad"}})

    assert response.status_code == 200
    assert response.json()["status"] == "failure"
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"


def test_emi_checkout_flow(client: TestClient):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "bnpl")

    options = client.get(f"/v1/checkout/{session_id}/options").json()
    assert options["details"]["eligible"] is True
    assert options["options"][0]["plan_id"] == "hdfc-emi_12"

    response = client.post(
        f"/v1/checkout/{session_id}/pay",
        json={"method_data": {"provider_id": "hdfc-emi", "tenure": 6}},
    )

    result = response.json()
    assert result["status"] == "success"
    assert result["details"]["plan_id"] == "hdfc-emi_6"
    assert result["details"]["total_installments"] == 6


def test_unknown_method_id(client: TestClient):
    session_id = start_checkout(client)["session_id"]

    response = client.post(f"/v1/checkout/{session_id}/method", json={"method_id": "paylater_legacy"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_INPUT"


def test_pay_without_selection(client: TestClient):
    session_id = start_checkout(client)["session_id"]
    response = client.post(f"/v1/checkout/{session_id}/pay", json={"method_data": {}})
    assert response.status_code == 409


def test_unknown_session(client: TestClient):
    assert client.get("/v1/checkout/does-not-exist").status_code == 404


def test_cancel_checkout(client: TestClient):
    session_id = start_checkout(client)["session_id"]

    assert client.delete(f"/v1/checkout/{session_id}").status_code == 204
    assert client.get(f"/v1/checkout/{session_id}").status_code == 404


def test_fx_checkout_with_mpin(client: TestClient, processor):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "fxdebitcard")

    wrong = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "0000"})
    assert wrong.status_code == 200
    assert wrong.json() == {"status": "pending", "attempts_remaining": 2, "message": "Invalid MPIN. 2 attempts remaining."}

    right = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "1234"})
    assert right.json()["status"] == "authorized"

    paid = client.post(
        f"/v1/checkout/{session_id}/pay",
        json={"method_data": {"variant_ids": ["fx_standard", "fx_premium"], "travel_insurance": True}},
    )
    assert paid.json()["status"] == "success"
    assert paid.json()["amount"] == "1597.00"
    assert processor.calls[0]["payload"]["amount"] == "1597.00"


def test_fx_mpin_lockout(client: TestClient, verifier):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "fxdebitcard")

    for remaining in (2, 1):
        response = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "0000"})
        assert response.json()["attempts_remaining"] == remaining

    locked = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "0000"})
    assert locked.status_code == 423
    assert locked.json()["detail"]["code"] == "LOCKED_OUT"
    assert locked.json()["detail"]["attempts_remaining"] == 0

    # Re-selecting the method does not restore the budget
    select(client, session_id, "upi")
    select(client, session_id, "fxdebitcard")
    still_locked = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "1234"})
    assert still_locked.status_code == 423
    assert verifier.calls == 3


@pytest.mark.parametrize("secret", ["12", "abcd", "12345"])
def test_fx_mpin_format_error(client: TestClient, secret: str):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "fxdebitcard")

    response = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": secret})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_FORMAT"


def test_authorize_requires_fx_method(client: TestClient):
    session_id = start_checkout(client)["session_id"]
    select(client, session_id, "upi")

    response = client.post(f"/v1/checkout/{session_id}/authorize", json={"secret": "1234"})
    assert response.status_code == 409


@patch("checkout_sdk.infrastructure.clients.emi_providers.EMIProviderClient.get_providers")
def test_emi_plans_backend_down(mock_providers: AsyncMock):
    """Test POST /v1/emi/plans when the provider lookup fails"""
    mock_providers.side_effect = GatewayAPIError("Payment backend timeout after 5.0s")

    response = TestClient(create_app()).post("/v1/emi/plans", json={"amount": 10000})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "GATEWAY_ERROR"


@patch("checkout_sdk.infrastructure.clients.catalog.CatalogClient.list_saved_cards")
@patch("checkout_sdk.infrastructure.clients.catalog.CatalogClient.list_methods")
def test_start_checkout_with_default_clients(mock_methods: AsyncMock, mock_cards: AsyncMock, payment_methods):
    """Test POST /v1/checkout through the production dependency wiring"""
    mock_methods.return_value = payment_methods
    mock_cards.return_value = []

    response = TestClient(create_app()).post(
        "/v1/checkout", json={"order_id": "order_1", "amount": 10000, "customer_id": "cust_new"}
    )

    assert response.status_code == 201
    assert response.json()["mode"] == "full"
    mock_methods.assert_awaited_once_with("cust_new")
