"""Prometheus metrics for monitoring payment outcomes, authorization and gateway performance"""

from prometheus_client import Counter, Histogram

# Payment metrics
payment_counter = Counter(
    "checkout_payment_total",
    "Total payment attempts that reached a result",
    ["method_type", "status"],  # success | failure | requires_action
)

# Authorization metrics
authorization_attempt_counter = Counter(
    "checkout_authorization_attempts_total",
    "MPIN/OTP verification attempts",
    ["channel", "outcome"],  # authorized | mismatch | locked | format_error
)

lockout_counter = Counter(
    "checkout_authorization_lockouts_total",
    "Authorization gates locked after exhausting their attempt budget",
    ["channel"],
)

# EMI metrics
emi_plans_histogram = Histogram(
    "checkout_emi_plans_offered",
    "Number of EMI plans offered per request",
    buckets=[0, 1, 3, 6, 10, 15, 25],
)

emi_ineligible_counter = Counter(
    "checkout_emi_ineligible_total",
    "EMI plan requests with no eligible provider",
    ["reason"],  # too_small | too_large | out_of_range | no_providers
)

# Gateway metrics
gateway_latency_histogram = Histogram(
    "gateway_latency_seconds",
    "Payment backend response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failure_counter = Counter(
    "gateway_failures_total",
    "Failed payment backend calls",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(method_type: str, status: str) -> None:
    """Record payment outcome by method"""
    payment_counter.labels(method_type=method_type, status=status).inc()


def record_authorization(channel: str, outcome: str) -> None:
    """Record an authorization attempt outcome"""
    authorization_attempt_counter.labels(channel=channel, outcome=outcome).inc()


def record_lockout(channel: str) -> None:
    lockout_counter.labels(channel=channel).inc()
