"""Maps checkout domain exceptions to HTTP responses"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from checkout_sdk.domain.exceptions import (
    AlreadyProcessingError,
    CheckoutError,
    FormatError,
    GatewayAPIError,
    InitializationError,
    InvalidInputError,
    InvalidStateError,
    InvariantViolationError,
    LockedOutError,
    NoEligiblePlansError,
    UnsupportedMethodError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidInputError: 422,
    ValidationError: 422,
    FormatError: 422,
    NoEligiblePlansError: 422,
    InvalidStateError: 409,
    AlreadyProcessingError: 409,
    UnsupportedMethodError: 409,
    LockedOutError: 423,
    InitializationError: 503,
    GatewayAPIError: 503,
    InvariantViolationError: 500,
}


def status_code_for(exc: CheckoutError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


def error_body(exc: CheckoutError) -> Dict[str, Any]:
    detail: Dict[str, Any] = {
        "code": exc.code,
        "message": exc.user_message,
        "category": exc.category,
        "retryable": exc.retryable,
    }
    if isinstance(exc, ValidationError):
        detail["errors"] = exc.errors
    elif isinstance(exc, LockedOutError):
        detail["attempts_remaining"] = exc.attempts_remaining
    elif isinstance(exc, NoEligiblePlansError):
        detail["reason"] = exc.reason
        if exc.min_amount is not None:
            detail["min_amount"] = str(exc.min_amount)
        if exc.max_amount is not None:
            detail["max_amount"] = str(exc.max_amount)
    return {"detail": detail}


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc}",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "path": request.url.path,
            "error_code": exc.code,
        },
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CheckoutError, checkout_error_handler)
