"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from checkout_sdk.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment_outcome(
    request_id: str,
    session_id: str,
    method_type: str,
    status: str,
    error_code: Optional[str],
    duration_ms: float,
) -> None:
    """Log structured payment outcome for analysis"""
    logging.info(
        "Payment completed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "payment_complete",
            "method_type": method_type,
            "payment_status": status,
            "error_code": error_code,
            "duration_ms": duration_ms,
        },
    )


def log_authorization_attempt(
    request_id: str,
    session_id: str,
    channel: str,
    outcome: str,
    attempts_remaining: int,
) -> None:
    """Log one MPIN/OTP attempt without the secret itself"""
    logging.info(
        "Authorization attempt",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "authorization",
            "channel": channel,
            "outcome": outcome,
            "attempts_remaining": attempts_remaining,
        },
    )
