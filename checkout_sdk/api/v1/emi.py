"""/v1/emi/* - EMI calculator, plan listing and validation endpoints"""

import logging

from fastapi import APIRouter, Depends, Request

from checkout_sdk.api.dependencies import get_emi_provider_source, get_request_id
from checkout_sdk.api.v1.schemas import (
    CalculateRequest,
    CompareRequest,
    CompareResponse,
    EligibilityRequest,
    EligibilityResponse,
    EMIPlanSchema,
    InstallmentSchema,
    MonthlyPaymentResponse,
    PlansRequest,
    PlansResponse,
    ScheduleRequest,
    ScheduleResponse,
    ValidatePlanRequest,
    ValidatePlanResponse,
)
from checkout_sdk.domain.emi import (
    best_plan,
    calculate_monthly_payment,
    check_eligibility,
    compare_to_full_payment,
    generate_plans,
    validate_plan,
)
from checkout_sdk.domain.exceptions import NoEligiblePlansError
from checkout_sdk.domain.installments import generate_installment_schedule
from checkout_sdk.domain.ports import EMIProviderSource
from checkout_sdk.infrastructure.observability.metrics import emi_ineligible_counter, emi_plans_histogram

router = APIRouter(prefix="/emi")


@router.post("/calculate", response_model=MonthlyPaymentResponse)
def calculate(request_body: CalculateRequest):
    """Reducing-balance monthly payment for an arbitrary principal, rate and tenure"""
    payment = calculate_monthly_payment(
        request_body.principal,
        request_body.annual_rate_percent,
        request_body.tenure_months,
    )
    return MonthlyPaymentResponse(
        monthly_payment=payment.monthly_payment,
        total_amount=payment.total_amount,
        total_interest=payment.total_interest,
    )


@router.post("/plans", response_model=PlansResponse)
async def list_plans(
    request_body: PlansRequest,
    request: Request,
    provider_source: EMIProviderSource = Depends(get_emi_provider_source),
):
    """
    Every plan the enabled providers offer for an amount, cheapest monthly first.

    Amounts no provider covers return 422 with reason too_small / too_large /
    out_of_range so the UI can explain why.
    """
    providers = await provider_source.get_providers()
    try:
        plans = generate_plans(request_body.amount, providers)
    except NoEligiblePlansError as e:
        emi_ineligible_counter.labels(reason=e.reason).inc()
        logging.info(
            f"No EMI plans for amount: {e}",
            extra={"request_id": get_request_id(request), "reason": e.reason},
        )
        raise

    emi_plans_histogram.observe(len(plans))
    best = best_plan(plans)
    return PlansResponse(
        amount=request_body.amount,
        plans=[EMIPlanSchema.from_plan(p) for p in plans],
        best_plan_id=best.plan_id if best else None,
    )


@router.post("/validate", response_model=ValidatePlanResponse)
async def validate(
    request_body: ValidatePlanRequest,
    provider_source: EMIProviderSource = Depends(get_emi_provider_source),
):
    providers = await provider_source.get_providers()
    result = validate_plan(request_body.plan.to_plan(), providers)
    return ValidatePlanResponse(valid=result.valid, errors=result.errors)


@router.post("/compare", response_model=CompareResponse)
def compare(request_body: CompareRequest):
    comparison = compare_to_full_payment(request_body.amount, request_body.plan.to_plan())
    return CompareResponse.from_comparison(comparison)


@router.post("/eligibility", response_model=EligibilityResponse)
def eligibility(request_body: EligibilityRequest):
    result = check_eligibility(
        request_body.amount,
        credit_score=request_body.credit_score,
        monthly_income=request_body.monthly_income,
    )
    return EligibilityResponse(eligible=result.eligible, reason=result.reason)


@router.post("/schedule", response_model=ScheduleResponse)
def schedule(request_body: ScheduleRequest):
    """Due dates and amounts for a plan's installments"""
    plan = request_body.plan.to_plan()
    installments = generate_installment_schedule(plan, start_date=request_body.start_date)
    return ScheduleResponse(
        plan_id=plan.plan_id,
        installments=[InstallmentSchema(due_date=i.due_date, amount=i.amount) for i in installments],
    )
