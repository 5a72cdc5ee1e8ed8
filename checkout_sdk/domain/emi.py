"""EMI engine - amortization, plan generation, validation and cost comparison"""

from decimal import Decimal, ROUND_CEILING
from typing import Iterable, List, Optional

from checkout_sdk.config import settings
from checkout_sdk.domain.exceptions import (
    InvalidInputError,
    InvariantViolationError,
    NoEligiblePlansError,
)
from checkout_sdk.domain.models import (
    CostComparison,
    EligibilityResult,
    EMIPlan,
    EMIProvider,
    EMIValidationResult,
    MonthlyPayment,
)
from checkout_sdk.utils.money import Number, format_amount, minor_unit, quantize, to_decimal

STANDARD_TENURES = (3, 6, 9, 12, 18, 24, 36)

# Allowed drift between emi_amount * tenure and the plan's financed total, in currency units
ROUNDING_TOLERANCE = Decimal("1")


def calculate_monthly_payment(
    principal: Number,
    annual_rate_percent: Number,
    tenure_months: int,
) -> MonthlyPayment:
    """
    Reducing-balance amortization for a single loan.

    Formula:
    - r = annual_rate_percent / 12 / 100
    - r == 0: payment = principal / n
    - otherwise: payment = P * r * (1+r)^n / ((1+r)^n - 1)

    The payment is rounded half-up to the minor unit; total_amount is exactly
    payment * n, so the two never drift apart. If half-up rounding would leave
    the installments short of the principal (zero or near-zero rates), the
    payment is rounded up instead so total_interest is never negative.

    Example:
        calculate_monthly_payment(10000, 12, 3)
        -> monthly 3400.22, total 10200.66, interest 200.66

    Raises:
        InvalidInputError: principal <= 0, tenure <= 0 or rate < 0
    """
    principal = to_decimal(principal)
    rate = to_decimal(annual_rate_percent)

    if principal <= 0:
        raise InvalidInputError("Principal must be greater than zero")
    if isinstance(tenure_months, bool) or not isinstance(tenure_months, int) or tenure_months <= 0:
        raise InvalidInputError("Tenure must be a positive number of months")
    if rate < 0:
        raise InvalidInputError("Interest rate cannot be negative")

    monthly_rate = rate / 12 / 100

    if monthly_rate == 0:
        exact_payment = principal / tenure_months
    else:
        factor = (1 + monthly_rate) ** tenure_months
        exact_payment = principal * monthly_rate * factor / (factor - 1)

    monthly_payment = quantize(exact_payment)
    if monthly_payment * tenure_months < principal:
        monthly_payment = exact_payment.quantize(minor_unit(), rounding=ROUND_CEILING)

    total_amount = quantize(monthly_payment * tenure_months)
    total_interest = quantize(total_amount - principal)

    return MonthlyPayment(
        monthly_payment=monthly_payment,
        total_amount=total_amount,
        total_interest=total_interest,
    )


def _build_plan(amount: Decimal, provider: EMIProvider, tenure: int) -> EMIPlan:
    rate = to_decimal(provider.interest_rates[tenure])
    fee = quantize(provider.processing_fee)
    payment = calculate_monthly_payment(amount, rate, tenure)

    return EMIPlan(
        provider_id=provider.id,
        provider_name=provider.name,
        tenure=tenure,
        interest_rate=rate,
        emi_amount=payment.monthly_payment,
        total_amount=payment.total_amount + fee,
        processing_fee=fee,
        total_interest=payment.total_interest,
    )


def sort_plans(plans: Iterable[EMIPlan]) -> List[EMIPlan]:
    """Order by monthly payment, then tenure, then provider id"""
    return sorted(plans, key=lambda p: (p.emi_amount, p.tenure, p.provider_id))


def generate_provider_plans(amount: Number, provider: EMIProvider) -> List[EMIPlan]:
    """One plan per supported tenure; empty when the provider can't finance the amount"""
    amount = to_decimal(amount)
    if not provider.enabled or not provider.accepts(amount):
        return []
    return sort_plans(_build_plan(amount, provider, tenure) for tenure in provider.supported_tenures)


def generate_plans(amount: Number, providers: Iterable[EMIProvider]) -> List[EMIPlan]:
    """
    Build every plan the enabled providers offer for this amount.

    Requirements:
    - Only providers with min_amount <= amount <= max_amount contribute
    - One plan per supported tenure, processing fee added to total_amount
    - Sorted ascending by emi_amount, ties by tenure then provider id

    Raises:
        InvalidInputError: amount <= 0
        NoEligiblePlansError: no enabled provider covers the amount. The
            reason distinguishes too_small / too_large for UI messaging.
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidInputError("Order amount must be greater than zero")

    enabled = [p for p in providers if p.enabled]
    if not enabled:
        raise NoEligiblePlansError("No EMI providers are available", reason="no_providers")

    eligible = [p for p in enabled if p.accepts(amount)]
    if not eligible:
        lowest = min(p.min_amount for p in enabled)
        highest = max(p.max_amount for p in enabled)
        if amount < lowest:
            raise NoEligiblePlansError(
                f"Minimum EMI amount is {format_amount(lowest)}",
                reason="too_small",
                min_amount=lowest,
                max_amount=highest,
            )
        if amount > highest:
            raise NoEligiblePlansError(
                f"Maximum EMI amount is {format_amount(highest)}",
                reason="too_large",
                min_amount=lowest,
                max_amount=highest,
            )
        raise NoEligiblePlansError(
            f"No EMI provider covers {format_amount(amount)}",
            reason="out_of_range",
            min_amount=lowest,
            max_amount=highest,
        )

    return sort_plans(
        _build_plan(amount, provider, tenure)
        for provider in eligible
        for tenure in provider.supported_tenures
    )


def best_plan(plans: Iterable[EMIPlan]) -> Optional[EMIPlan]:
    """Plan with the lowest monthly payment, or None"""
    ordered = sort_plans(plans)
    return ordered[0] if ordered else None


def validate_plan(plan: EMIPlan, providers: Iterable[EMIProvider]) -> EMIValidationResult:
    """
    Structural and business validation used to gate submission.

    Never raises for a bad plan; every problem found is listed in errors.
    """
    errors: List[str] = []
    provider = next((p for p in providers if p.id == plan.provider_id), None)

    if provider is None:
        errors.append("Invalid EMI provider")
    else:
        if not provider.enabled:
            errors.append("EMI provider is not available")
        if plan.tenure not in provider.supported_tenures:
            errors.append("Invalid tenure for selected provider")
        elif to_decimal(provider.interest_rates[plan.tenure]) != to_decimal(plan.interest_rate):
            errors.append("Interest rate does not match provider rate for this tenure")

    if plan.emi_amount <= 0:
        errors.append("Invalid EMI amount")
    if plan.total_amount <= 0:
        errors.append("Invalid total amount")
    if plan.processing_fee < 0:
        errors.append("Invalid processing fee")

    if plan.tenure <= 0:
        errors.append("Invalid tenure")
    else:
        financed = plan.total_amount - plan.processing_fee
        if abs(plan.emi_amount * plan.tenure - financed) > ROUNDING_TOLERANCE:
            errors.append("EMI amount does not match total amount for the tenure")

    return EMIValidationResult(valid=not errors, errors=errors)


def compare_to_full_payment(amount: Number, plan: EMIPlan) -> CostComparison:
    """
    Compare an EMI plan's total cost with paying the order in full.

    Raises:
        InvalidInputError: amount <= 0
        InvariantViolationError: the plan costs less than the order, which a
            generated plan (interest + fee >= 0) can never do
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise InvalidInputError("Order amount must be greater than zero")

    extra_cost = plan.total_amount - amount
    if extra_cost < 0:
        raise InvariantViolationError(
            f"Plan {plan.plan_id} total {plan.total_amount} is below the order amount {amount}"
        )

    return CostComparison(
        full_payment_cost=amount,
        emi_total_cost=plan.total_amount,
        extra_cost=extra_cost,
        extra_cost_percent=quantize(extra_cost / amount * 100),
    )


def check_eligibility(
    amount: Number,
    credit_score: Optional[int] = None,
    monthly_income: Optional[Number] = None,
) -> EligibilityResult:
    """
    Customer-level EMI eligibility, checked before plans are offered.

    Rules (thresholds from settings):
    - emi_min_amount <= amount <= emi_max_amount
    - credit_score, when known, must reach emi_min_credit_score
    - the EMI at the reference tenure/rate must not exceed
      emi_max_income_ratio of monthly_income, when income is known
    """
    amount = to_decimal(amount)

    if amount < settings.emi_min_amount:
        return EligibilityResult(False, f"Minimum EMI amount is {format_amount(settings.emi_min_amount)}")
    if amount > settings.emi_max_amount:
        return EligibilityResult(False, f"Maximum EMI amount is {format_amount(settings.emi_max_amount)}")

    if credit_score is not None and credit_score < settings.emi_min_credit_score:
        return EligibilityResult(
            False, f"Credit score too low for EMI (minimum {settings.emi_min_credit_score})"
        )

    if monthly_income is not None:
        income = to_decimal(monthly_income)
        if income <= 0:
            return EligibilityResult(False, "Monthly income must be greater than zero")
        estimate = calculate_monthly_payment(
            amount, settings.emi_reference_rate, settings.emi_reference_tenure
        ).monthly_payment
        ceiling = income * to_decimal(settings.emi_max_income_ratio)
        if estimate > ceiling:
            return EligibilityResult(
                False,
                f"Estimated EMI of {format_amount(estimate)} exceeds "
                f"{int(settings.emi_max_income_ratio * 100)}% of monthly income",
            )

    return EligibilityResult(True)
