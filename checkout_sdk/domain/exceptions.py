"""Domain-specific exceptions"""

from typing import List, Optional


class CheckoutError(Exception):
    """Base exception for the checkout core"""

    code = "CHECKOUT_ERROR"
    category = "validation"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class InitializationError(CheckoutError):
    """Method or saved-card lookup failed while starting checkout"""

    code = "INIT_FAILED"
    category = "network"
    retryable = True


class InvalidStateError(CheckoutError):
    """Operation attempted from a state that forbids it"""

    code = "INVALID_STATE"


class AlreadyProcessingError(CheckoutError):
    """A request is already in flight for this orchestrator or gate"""

    code = "ALREADY_PROCESSING"


class UnsupportedMethodError(CheckoutError):
    """No handler is registered for the selected payment type"""

    code = "UNSUPPORTED_METHOD"


class FormatError(CheckoutError):
    """Secret is malformed; no attempt was consumed"""

    code = "INVALID_FORMAT"
    category = "auth"
    retryable = True


class LockedOutError(CheckoutError):
    """Attempt budget exhausted, the gate is locked"""

    code = "LOCKED_OUT"
    category = "auth"

    def __init__(self, message: str, attempts_remaining: int = 0):
        super().__init__(message)
        self.attempts_remaining = attempts_remaining


class InvalidInputError(CheckoutError):
    """EMI math or order data given out-of-domain values"""

    code = "INVALID_INPUT"


class NoEligiblePlansError(CheckoutError):
    """Amount is outside the range of every enabled EMI provider"""

    code = "NO_ELIGIBLE_PLANS"

    def __init__(
        self,
        message: str,
        reason: str,
        min_amount: Optional[object] = None,
        max_amount: Optional[object] = None,
    ):
        super().__init__(message)
        self.reason = reason  # too_small | too_large | out_of_range | no_providers
        self.min_amount = min_amount
        self.max_amount = max_amount


class ValidationError(CheckoutError):
    """Method-specific input or an EMI plan failed validation"""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class InvariantViolationError(CheckoutError):
    """A computed value broke an invariant that correct inputs cannot break"""

    code = "INVARIANT_VIOLATION"


class GatewayAPIError(CheckoutError):
    """Payment backend returned an error or is unavailable"""

    code = "GATEWAY_ERROR"
    category = "network"
    retryable = True
