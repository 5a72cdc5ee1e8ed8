"""Checkout orchestration state machine: methods -> payment -> processing -> result"""

import asyncio
import dataclasses
import logging
from typing import Any, List, Mapping, Optional

from checkout_sdk.domain.exceptions import (
    AlreadyProcessingError,
    CheckoutError,
    InitializationError,
    InvalidInputError,
    InvalidStateError,
    UnsupportedMethodError,
)
from checkout_sdk.domain.handlers import MethodHandler
from checkout_sdk.domain.models import (
    CheckoutMode,
    CheckoutState,
    CheckoutStep,
    Order,
    PaymentError,
    PaymentMethod,
    PaymentMethodType,
    PaymentResult,
    PaymentStatus,
    PresentationData,
)
from checkout_sdk.domain.ports import MethodCatalog
from checkout_sdk.utils.money import to_decimal

logger = logging.getLogger(__name__)


class CheckoutOrchestrator:
    """
    Owns one checkout session.

    Construct one per session and pass it to whoever drives the UI; nothing is
    shared between instances. The orchestrator performs no I/O itself: it
    awaits the catalog during start_checkout and the selected handler during
    process_payment, and rejects overlapping requests instead of queuing them.
    """

    def __init__(self, catalog: MethodCatalog, handlers: Mapping[PaymentMethodType, MethodHandler]):
        self._catalog = catalog
        self._handlers = dict(handlers)
        self._state = CheckoutState()
        # Bumped on every reset so a stale in-flight call can't write into a newer session
        self._generation = 0

    @property
    def state(self) -> CheckoutState:
        return dataclasses.replace(
            self._state,
            methods=list(self._state.methods),
            saved_cards=list(self._state.saved_cards),
        )

    @property
    def current_step(self) -> CheckoutStep:
        return self._state.current_step

    @property
    def selected_method(self) -> Optional[PaymentMethod]:
        return self._state.selected_method

    @property
    def payment_methods(self) -> List[PaymentMethod]:
        return list(self._state.methods)

    @property
    def order(self) -> Optional[Order]:
        return self._state.order

    @property
    def last_result(self) -> Optional[PaymentResult]:
        return self._state.last_result

    def handler_for(self, method_type: PaymentMethodType) -> MethodHandler:
        try:
            return self._handlers[method_type]
        except KeyError:
            raise UnsupportedMethodError(f"No handler registered for {method_type.value} payments") from None

    async def start_checkout(self, order: Order) -> CheckoutState:
        """
        Begin a session for an order.

        Loads enabled payment methods and, for known customers, their saved
        cards, then moves to `methods`.

        Raises:
            InvalidInputError: order amount is not positive
            AlreadyProcessingError: a start or a payment is already in flight
            InitializationError: the lookup failed; state stays idle
        """
        if self._state.loading or self._state.current_step == CheckoutStep.PROCESSING:
            raise AlreadyProcessingError("Checkout is busy, wait for the current request to finish")
        if to_decimal(order.amount) <= 0:
            raise InvalidInputError("Order amount must be greater than zero")

        self.reset_checkout()
        generation = self._generation
        self._state.loading = True

        try:
            methods = await self._catalog.list_methods(order.customer_id)
            saved_cards = await self._catalog.list_saved_cards(order.customer_id) if order.customer_id else []
        except Exception as e:
            if generation == self._generation:
                self._state = CheckoutState()
            logger.error(
                f"Checkout initialization failed: {e}",
                extra={"order_id": order.order_id, "customer_id": order.customer_id},
            )
            raise InitializationError("Failed to start checkout") from e
        except asyncio.CancelledError:
            if generation == self._generation:
                self._state = CheckoutState()
            raise

        if generation != self._generation:
            raise InvalidStateError("Checkout was reset while starting")

        self._state = CheckoutState(
            current_step=CheckoutStep.METHODS,
            methods=[m for m in methods if m.enabled],
            saved_cards=list(saved_cards),
            mode=CheckoutMode.QUICK if saved_cards else CheckoutMode.FULL,
            order=order,
        )
        logger.info(
            "Checkout started",
            extra={"order_id": order.order_id, "methods": len(self._state.methods), "mode": self._state.mode.value},
        )
        return self.state

    def select_payment_method(self, method: PaymentMethod) -> bool:
        """
        Choose a method and move to `payment`.

        Returns False and changes nothing when the method is disabled. Picking
        a different method while already in `payment` only replaces the
        selection.

        Raises:
            InvalidStateError: called outside `methods` / `payment`
        """
        step = self._state.current_step
        if step not in (CheckoutStep.METHODS, CheckoutStep.PAYMENT):
            raise InvalidStateError(f"Cannot select a payment method during {step.value}")

        if not method.enabled:
            logger.info("Rejected disabled payment method", extra={"method_id": method.id})
            return False

        self._state.selected_method = method
        self._state.current_step = CheckoutStep.PAYMENT
        return True

    def _require_payment_step(self) -> PaymentMethod:
        method = self._state.selected_method
        if self._state.current_step != CheckoutStep.PAYMENT or method is None:
            raise InvalidStateError(
                f"Payment requires a selected method, current step is {self._state.current_step.value}"
            )
        return method

    async def prepare_payment(self) -> PresentationData:
        """Ask the selected method's handler for what the UI should show"""
        method = self._require_payment_step()
        return await self.handler_for(method.type).prepare(self._state.order)

    async def process_payment(self, method_data: Optional[Mapping[str, Any]] = None) -> PaymentResult:
        """
        Submit the payment through the selected method's handler.

        Moves payment -> processing -> result; `result` is reached exactly once
        per call whether the handler succeeds, fails, or raises.

        Raises:
            AlreadyProcessingError: a payment is already processing
            InvalidStateError: not in `payment` or nothing selected
            UnsupportedMethodError: no handler for the selected type
        """
        if self._state.current_step == CheckoutStep.PROCESSING:
            raise AlreadyProcessingError("Payment is already being processed")
        method = self._require_payment_step()
        handler = self.handler_for(method.type)
        order = self._state.order

        generation = self._generation
        self._state.current_step = CheckoutStep.PROCESSING
        self._state.loading = True
        logger.info("Processing payment", extra={"order_id": order.order_id, "method_type": method.type.value})

        try:
            result = await handler.submit(order, method_data or {})
        except CheckoutError as e:
            logger.warning(
                f"Payment failed: {e}",
                extra={"order_id": order.order_id, "method_type": method.type.value, "error_code": e.code},
            )
            result = self._failure_result(order, method, e)
        except (Exception, asyncio.CancelledError):
            logger.exception("Unexpected error while processing payment", extra={"order_id": order.order_id})
            self._finish(generation, self._failure_result(order, method, None))
            raise

        self._finish(generation, result)
        return result

    def _failure_result(self, order: Order, method: PaymentMethod, error: Optional[CheckoutError]) -> PaymentResult:
        if error is None:
            payment_error = PaymentError(
                code="PAYMENT_FAILED",
                message="Payment processing failed",
                category="network",
                retryable=True,
            )
        else:
            payment_error = PaymentError(
                code=error.code,
                message=error.user_message,
                category=error.category,
                retryable=error.retryable,
            )
        return PaymentResult(
            status=PaymentStatus.FAILURE,
            amount=to_decimal(order.amount),
            currency=order.currency,
            method_type=method.type,
            message=payment_error.message,
            error=payment_error,
        )

    def _finish(self, generation: int, result: PaymentResult) -> None:
        if generation != self._generation:
            logger.info("Discarding payment result for a reset checkout")
            return
        self._state.last_result = result
        self._state.loading = False
        self._state.current_step = CheckoutStep.RESULT

    def reset_checkout(self) -> None:
        """Return to idle from any state"""
        self._generation += 1
        self._state = CheckoutState()
