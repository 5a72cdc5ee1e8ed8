"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from checkout_sdk.domain.models import (
    AuthorizationOutcome,
    CheckoutState,
    CostComparison,
    EMIPlan,
    PaymentMethod,
    PaymentResult,
)


class CalculateRequest(BaseModel):
    """Request body for POST /v1/emi/calculate"""

    principal: Decimal = Field(..., description="Amount financed")
    annual_rate_percent: Decimal = Field(..., description="Annual interest rate in percent")
    tenure_months: int = Field(..., description="Number of monthly installments")


class MonthlyPaymentResponse(BaseModel):
    """Response for POST /v1/emi/calculate"""

    monthly_payment: Decimal
    total_amount: Decimal
    total_interest: Decimal


class EMIPlanSchema(BaseModel):
    """Single EMI plan"""

    plan_id: Optional[str] = None
    provider_id: str
    provider_name: str = ""
    tenure: int
    interest_rate: Decimal
    emi_amount: Decimal
    total_amount: Decimal
    processing_fee: Decimal
    total_interest: Decimal = Decimal("0")

    @classmethod
    def from_plan(cls, plan: EMIPlan) -> "EMIPlanSchema":
        return cls(
            plan_id=plan.plan_id,
            provider_id=plan.provider_id,
            provider_name=plan.provider_name,
            tenure=plan.tenure,
            interest_rate=plan.interest_rate,
            emi_amount=plan.emi_amount,
            total_amount=plan.total_amount,
            processing_fee=plan.processing_fee,
            total_interest=plan.total_interest,
        )

    def to_plan(self) -> EMIPlan:
        return EMIPlan(
            provider_id=self.provider_id,
            provider_name=self.provider_name,
            tenure=self.tenure,
            interest_rate=self.interest_rate,
            emi_amount=self.emi_amount,
            total_amount=self.total_amount,
            processing_fee=self.processing_fee,
            total_interest=self.total_interest,
        )


class PlansRequest(BaseModel):
    """Request body for POST /v1/emi/plans"""

    amount: Decimal = Field(..., gt=0, description="Order amount")


class PlansResponse(BaseModel):
    """Response for POST /v1/emi/plans"""

    amount: Decimal
    plans: List[EMIPlanSchema]
    best_plan_id: Optional[str] = None


class ValidatePlanRequest(BaseModel):
    """Request body for POST /v1/emi/validate"""

    plan: EMIPlanSchema


class ValidatePlanResponse(BaseModel):
    valid: bool
    errors: List[str]


class CompareRequest(BaseModel):
    """Request body for POST /v1/emi/compare"""

    amount: Decimal = Field(..., gt=0)
    plan: EMIPlanSchema


class CompareResponse(BaseModel):
    full_payment_cost: Decimal
    emi_total_cost: Decimal
    extra_cost: Decimal
    extra_cost_percent: Decimal

    @classmethod
    def from_comparison(cls, comparison: CostComparison) -> "CompareResponse":
        return cls(
            full_payment_cost=comparison.full_payment_cost,
            emi_total_cost=comparison.emi_total_cost,
            extra_cost=comparison.extra_cost,
            extra_cost_percent=comparison.extra_cost_percent,
        )


class EligibilityRequest(BaseModel):
    """Request body for POST /v1/emi/eligibility"""

    amount: Decimal = Field(..., gt=0)
    credit_score: Optional[int] = Field(None, ge=300, le=900)
    monthly_income: Optional[Decimal] = None


class EligibilityResponse(BaseModel):
    eligible: bool
    reason: Optional[str] = None


class ScheduleRequest(BaseModel):
    """Request body for POST /v1/emi/schedule"""

    plan: EMIPlanSchema
    start_date: Optional[date] = None


class InstallmentSchema(BaseModel):
    """Single installment in a repayment schedule"""

    due_date: date
    amount: Decimal


class ScheduleResponse(BaseModel):
    plan_id: str
    installments: List[InstallmentSchema]


class StartCheckoutRequest(BaseModel):
    """Request body for POST /v1/checkout"""

    order_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Order amount in major currency units")
    currency: str = Field("INR", min_length=3, max_length=3)
    customer_id: Optional[str] = None
    description: Optional[str] = None


class PaymentMethodSchema(BaseModel):
    id: str
    type: str
    name: str
    enabled: bool
    description: Optional[str] = None

    @classmethod
    def from_method(cls, method: PaymentMethod) -> "PaymentMethodSchema":
        return cls(
            id=method.id,
            type=method.type.value,
            name=method.name,
            enabled=method.enabled,
            description=method.description,
        )


class PaymentErrorSchema(BaseModel):
    code: str
    message: str
    category: str
    retryable: bool


class PaymentResultSchema(BaseModel):
    """Outcome of POST /v1/checkout/{id}/pay"""

    status: str
    amount: Decimal
    currency: str
    method_type: str
    payment_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[PaymentErrorSchema] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: PaymentResult) -> "PaymentResultSchema":
        error = None
        if result.error is not None:
            error = PaymentErrorSchema(
                code=result.error.code,
                message=result.error.message,
                category=result.error.category,
                retryable=result.error.retryable,
            )
        return cls(
            status=result.status.value,
            amount=result.amount,
            currency=result.currency,
            method_type=result.method_type.value,
            payment_id=result.payment_id,
            message=result.message,
            error=error,
            details=result.details,
        )


class CheckoutStateResponse(BaseModel):
    """Snapshot of a checkout session"""

    session_id: str
    current_step: str
    mode: str
    loading: bool
    methods: List[PaymentMethodSchema]
    selected_method: Optional[PaymentMethodSchema] = None
    saved_card_count: int = 0
    last_result: Optional[PaymentResultSchema] = None

    @classmethod
    def from_state(cls, session_id: str, state: CheckoutState) -> "CheckoutStateResponse":
        return cls(
            session_id=session_id,
            current_step=state.current_step.value,
            mode=state.mode.value,
            loading=state.loading,
            methods=[PaymentMethodSchema.from_method(m) for m in state.methods],
            selected_method=(
                PaymentMethodSchema.from_method(state.selected_method) if state.selected_method else None
            ),
            saved_card_count=len(state.saved_cards),
            last_result=PaymentResultSchema.from_result(state.last_result) if state.last_result else None,
        )


class SelectMethodRequest(BaseModel):
    """Request body for POST /v1/checkout/{id}/method"""

    method_id: str = Field(..., min_length=1)


class SelectMethodResponse(BaseModel):
    accepted: bool
    state: CheckoutStateResponse


class AuthorizeRequest(BaseModel):
    """Request body for POST /v1/checkout/{id}/authorize"""

    secret: str


class AuthorizeResponse(BaseModel):
    status: str
    attempts_remaining: int
    message: str

    @classmethod
    def from_outcome(cls, outcome: AuthorizationOutcome) -> "AuthorizeResponse":
        return cls(
            status=outcome.status.value,
            attempts_remaining=outcome.attempts_remaining,
            message=outcome.message,
        )


class PayRequest(BaseModel):
    """Request body for POST /v1/checkout/{id}/pay"""

    method_data: Dict[str, Any] = Field(default_factory=dict)
