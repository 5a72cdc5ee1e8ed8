"""/v1/checkout/* - checkout session lifecycle endpoints"""

import time
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.encoders import jsonable_encoder

from checkout_sdk.api.dependencies import get_checkout_factory, get_request_id, get_session, get_session_registry
from checkout_sdk.api.sessions import CheckoutFactory, CheckoutSession, SessionRegistry
from checkout_sdk.api.v1.schemas import (
    AuthorizeRequest,
    AuthorizeResponse,
    CheckoutStateResponse,
    EMIPlanSchema,
    PayRequest,
    PaymentResultSchema,
    SelectMethodRequest,
    SelectMethodResponse,
    StartCheckoutRequest,
)
from checkout_sdk.domain.exceptions import (
    FormatError,
    InvalidInputError,
    InvalidStateError,
    LockedOutError,
)
from checkout_sdk.domain.handlers import FXDebitCardHandler
from checkout_sdk.domain.models import AuthorizationStatus, EMIPlan, Order, PaymentMethodType
from checkout_sdk.infrastructure.observability.logging import log_authorization_attempt, log_payment_outcome
from checkout_sdk.infrastructure.observability.metrics import record_authorization, record_lockout, record_payment

router = APIRouter(prefix="/checkout")


def _encode_option(option: Any) -> Any:
    if isinstance(option, EMIPlan):
        return EMIPlanSchema.from_plan(option).model_dump(mode="json")
    return jsonable_encoder(option, custom_encoder={Decimal: str})


def _state_response(session: CheckoutSession) -> CheckoutStateResponse:
    return CheckoutStateResponse.from_state(session.session_id, session.orchestrator.state)


@router.post("", response_model=CheckoutStateResponse, status_code=201)
async def start_checkout(
    request_body: StartCheckoutRequest,
    factory: CheckoutFactory = Depends(get_checkout_factory),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Start a checkout session for an order.

    Loads the enabled payment methods and the customer's saved cards. The
    session is only registered once that lookup succeeds.
    """
    order = Order(
        order_id=request_body.order_id,
        amount=request_body.amount,
        currency=request_body.currency,
        customer_id=request_body.customer_id,
        description=request_body.description,
    )
    orchestrator = factory.create(order.customer_id)
    await orchestrator.start_checkout(order)
    return _state_response(registry.add(orchestrator))


@router.get("/{session_id}", response_model=CheckoutStateResponse)
async def get_checkout(session: CheckoutSession = Depends(get_session)):
    return _state_response(session)


@router.post("/{session_id}/method", response_model=SelectMethodResponse)
async def select_method(request_body: SelectMethodRequest, session: CheckoutSession = Depends(get_session)):
    orchestrator = session.orchestrator
    method = next((m for m in orchestrator.payment_methods if m.id == request_body.method_id), None)
    if method is None:
        raise InvalidInputError(f"Unknown payment method: {request_body.method_id}")

    accepted = orchestrator.select_payment_method(method)
    if accepted and method.type == PaymentMethodType.FX_DEBIT_CARD:
        handler = orchestrator.handler_for(method.type)
        # Budget persists across re-selection within a session
        if handler.gate is None:
            handler.begin_authorization()

    return SelectMethodResponse(accepted=accepted, state=_state_response(session))


@router.get("/{session_id}/options")
async def payment_options(session: CheckoutSession = Depends(get_session)):
    """Options and details the selected method needs the customer to choose from"""
    presentation = await session.orchestrator.prepare_payment()
    return {
        "method_type": presentation.method_type.value,
        "options": [_encode_option(o) for o in presentation.options],
        "details": jsonable_encoder(presentation.details, custom_encoder={Decimal: str}),
    }


@router.post("/{session_id}/authorize", response_model=AuthorizeResponse)
async def authorize(
    request_body: AuthorizeRequest,
    request: Request,
    session: CheckoutSession = Depends(get_session),
):
    """Submit the customer's MPIN for an FX debit card payment"""
    orchestrator = session.orchestrator
    method = orchestrator.selected_method
    if method is None or method.type != PaymentMethodType.FX_DEBIT_CARD:
        raise InvalidStateError("MPIN authorization is only required for FX debit card payments")

    handler: FXDebitCardHandler = orchestrator.handler_for(method.type)
    gate = handler.gate or handler.begin_authorization()
    channel = gate.policy.channel.value
    request_id = get_request_id(request)
    was_locked = gate.status == AuthorizationStatus.LOCKED

    try:
        outcome = await gate.submit(request_body.secret)
    except LockedOutError:
        record_authorization(channel, "locked")
        if not was_locked:
            record_lockout(channel)
        log_authorization_attempt(request_id, session.session_id, channel, "locked", 0)
        raise
    except FormatError:
        record_authorization(channel, "format_error")
        raise

    result = "authorized" if gate.authorized else "mismatch"
    record_authorization(channel, result)
    log_authorization_attempt(request_id, session.session_id, channel, result, outcome.attempts_remaining)
    return AuthorizeResponse.from_outcome(outcome)


@router.post("/{session_id}/pay", response_model=PaymentResultSchema)
async def pay(
    request_body: PayRequest,
    request: Request,
    session: CheckoutSession = Depends(get_session),
):
    """
    Submit the payment with the selected method.

    Declines and invalid method input come back as a failure result with
    200; only state conflicts and missing sessions are HTTP errors.
    """
    start_time = time.time()
    result = await session.orchestrator.process_payment(request_body.method_data)

    duration_ms = (time.time() - start_time) * 1000
    record_payment(result.method_type.value, result.status.value)
    log_payment_outcome(
        get_request_id(request),
        session.session_id,
        result.method_type.value,
        result.status.value,
        result.error.code if result.error else None,
        duration_ms,
    )
    return PaymentResultSchema.from_result(result)


@router.delete("/{session_id}", status_code=204)
async def cancel_checkout(
    session: CheckoutSession = Depends(get_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    session.orchestrator.reset_checkout()
    registry.remove(session.session_id)
    return Response(status_code=204)
