"""Domain models - pure Python dataclasses representing checkout entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from checkout_sdk.domain.exceptions import InvalidInputError


class PaymentMethodType(str, Enum):
    """Payment types with a registered handler"""

    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    BNPL = "bnpl"  # EMI plans
    FX_DEBIT_CARD = "fxdebitcard"


class CheckoutStep(str, Enum):
    """Top-level checkout state"""

    IDLE = "idle"
    METHODS = "methods"
    PAYMENT = "payment"
    PROCESSING = "processing"
    RESULT = "result"


class CheckoutMode(str, Enum):
    QUICK = "quick"  # Customer has saved cards
    FULL = "full"


class PaymentStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    REQUIRES_ACTION = "requires_action"


class AuthorizationChannel(str, Enum):
    MPIN = "mpin"
    OTP = "otp"


class AuthorizationStatus(str, Enum):
    PENDING = "pending"
    VERIFYING = "verifying"
    AUTHORIZED = "authorized"
    LOCKED = "locked"


@dataclass(frozen=True)
class PaymentMethod:
    """Catalog entry supplied by the method lookup collaborator"""

    id: str
    type: PaymentMethodType
    name: str
    enabled: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class SavedCard:
    """Tokenized card on file for a customer"""

    token_id: str
    last4: str
    brand: str  # visa | mastercard | rupay | amex
    expiry_month: str
    expiry_year: str
    holder_name: Optional[str] = None

    def is_expired(self, today: date | None = None) -> bool:
        today = today or date.today()
        month = int(self.expiry_month)
        year = int(self.expiry_year)
        if year < 100:
            year += 2000
        return (year, month) < (today.year, today.month)


@dataclass
class Order:
    """Order descriptor passed into checkout"""

    order_id: str
    amount: Decimal
    currency: str = "INR"
    customer_id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PaymentError:
    """Error payload attached to a failed payment result"""

    code: str
    message: str
    category: str  # network | issuer | auth | risk | validation
    retryable: bool


@dataclass(frozen=True)
class GatewayResponse:
    """Raw response from the payment-processing collaborator"""

    status: PaymentStatus
    transaction_id: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a payment attempt"""

    status: PaymentStatus
    amount: Decimal
    currency: str
    method_type: PaymentMethodType
    payment_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[PaymentError] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CheckoutState:
    """Mutable checkout session state, owned by one orchestrator"""

    current_step: CheckoutStep = CheckoutStep.IDLE
    selected_method: Optional[PaymentMethod] = None
    loading: bool = False
    saved_cards: List[SavedCard] = field(default_factory=list)
    mode: CheckoutMode = CheckoutMode.FULL
    methods: List[PaymentMethod] = field(default_factory=list)
    order: Optional[Order] = None
    last_result: Optional[PaymentResult] = None


@dataclass(frozen=True)
class EMIProvider:
    """Lender reference data: amount range, tenures and rate table"""

    id: str
    name: str
    min_amount: Decimal
    max_amount: Decimal
    supported_tenures: Tuple[int, ...]
    interest_rates: Dict[int, Decimal]  # tenure -> annual rate percent
    processing_fee: Decimal = Decimal("0")
    enabled: bool = True

    def __post_init__(self):
        missing = [t for t in self.supported_tenures if t not in self.interest_rates]
        if missing:
            raise InvalidInputError(f"Provider {self.id} has no interest rate for tenures {missing}")
        if self.max_amount < self.min_amount:
            raise InvalidInputError(f"Provider {self.id} max_amount is below min_amount")

    def accepts(self, amount: Decimal) -> bool:
        return self.min_amount <= amount <= self.max_amount


@dataclass(frozen=True)
class MonthlyPayment:
    """Amortization result for one principal/rate/tenure triple"""

    monthly_payment: Decimal
    total_amount: Decimal
    total_interest: Decimal


@dataclass(frozen=True)
class EMIPlan:
    """Concrete repayment plan, computed by the EMI engine only"""

    provider_id: str
    provider_name: str
    tenure: int  # months
    interest_rate: Decimal
    emi_amount: Decimal
    total_amount: Decimal  # installments plus processing fee
    processing_fee: Decimal
    total_interest: Decimal

    @property
    def plan_id(self) -> str:
        return f"{self.provider_id}_{self.tenure}"


@dataclass(frozen=True)
class EMIValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CostComparison:
    """EMI plan cost against paying the order in full"""

    full_payment_cost: Decimal
    emi_total_cost: Decimal
    extra_cost: Decimal
    extra_cost_percent: Decimal


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class Installment:
    """Single payment in an EMI repayment schedule"""

    due_date: date
    amount: Decimal


@dataclass
class AuthorizationAttemptState:
    """Attempt bookkeeping for one authorization gate"""

    max_attempts: int
    attempts_used: int = 0
    secret_entered: bool = False
    status: AuthorizationStatus = AuthorizationStatus.PENDING

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempts_used


@dataclass(frozen=True)
class AuthorizationOutcome:
    """Non-terminal or successful result of a gate submission"""

    status: AuthorizationStatus
    attempts_remaining: int
    message: str


@dataclass(frozen=True)
class Bank:
    code: str
    name: str
    available: bool = True


@dataclass(frozen=True)
class UPIApp:
    id: str
    name: str


@dataclass(frozen=True)
class WalletProvider:
    id: str
    name: str
    available: bool = True
    max_transaction_limit: Decimal = Decimal("100000")


@dataclass(frozen=True)
class FXCardVariant:
    id: str
    name: str
    price: Decimal


@dataclass
class PresentationData:
    """What a handler hands back to the UI before submission"""

    method_type: PaymentMethodType
    options: List[Any] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)
