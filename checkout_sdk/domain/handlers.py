"""Per-payment-type handlers behind a uniform prepare/submit contract"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from checkout_sdk.config import settings
from checkout_sdk.domain.authorization import AuthorizationGate, SecretPolicy
from checkout_sdk.domain.emi import check_eligibility, generate_plans, generate_provider_plans, validate_plan
from checkout_sdk.domain.exceptions import InvalidInputError, NoEligiblePlansError, ValidationError
from checkout_sdk.domain.installments import generate_installment_schedule
from checkout_sdk.domain.models import (
    Bank,
    EMIPlan,
    EMIProvider,
    FXCardVariant,
    GatewayResponse,
    Order,
    PaymentError,
    PaymentMethodType,
    PaymentResult,
    PaymentStatus,
    PresentationData,
    SavedCard,
    UPIApp,
    WalletProvider,
)
from checkout_sdk.domain.ports import EMIProviderSource, MethodCatalog, PaymentProcessor, SecretVerifier
from checkout_sdk.utils.money import format_amount, quantize, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_UPI_APPS = (
    UPIApp("phonepe", "PhonePe"),
    UPIApp("googlepay", "Google Pay"),
    UPIApp("paytm", "Paytm"),
    UPIApp("bhim", "BHIM"),
    UPIApp("amazonpay", "Amazon Pay"),
)

DEFAULT_BANKS = (
    Bank("HDFC", "HDFC Bank"),
    Bank("ICICI", "ICICI Bank"),
    Bank("SBI", "State Bank of India"),
    Bank("AXIS", "Axis Bank"),
    Bank("KOTAK", "Kotak Mahindra Bank", available=False),
)

POPULAR_BANK_CODES = ("HDFC", "ICICI", "SBI", "AXIS")

DEFAULT_WALLETS = (
    WalletProvider("paytm", "Paytm", max_transaction_limit=Decimal("100000")),
    WalletProvider("phonepe", "PhonePe", max_transaction_limit=Decimal("100000")),
    WalletProvider("amazonpay", "Amazon Pay", max_transaction_limit=Decimal("50000")),
    WalletProvider("mobikwik", "MobiKwik", max_transaction_limit=Decimal("50000")),
    WalletProvider("freecharge", "FreeCharge", max_transaction_limit=Decimal("25000")),
)

DEFAULT_FX_VARIANTS = (
    FXCardVariant("fx_standard", "FX Debit Card - Standard", Decimal("499")),
    FXCardVariant("fx_premium", "FX Debit Card - Premium", Decimal("799")),
    FXCardVariant("fx_family", "FX Debit Card - Family Pack", Decimal("1299")),
)

_DECLINE_MESSAGE = "Payment could not be completed"


def _money(value: Decimal) -> str:
    """Decimal to wire string"""
    return str(quantize(value))


class MethodHandler(ABC):
    """
    Adapter for one payment type.

    Subclasses implement `prepare` and `_build_payload`; `submit` is shared so
    the processing collaborator is called from exactly one place.
    """

    method_type: PaymentMethodType

    def __init__(self, processor: PaymentProcessor):
        self.processor = processor

    @abstractmethod
    async def prepare(self, order: Order) -> PresentationData:
        """Data the UI needs to collect method-specific input"""

    @abstractmethod
    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate input and build the processing payload; raise ValidationError on bad input"""

    def _result_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def submit(self, order: Order, method_data: Mapping[str, Any]) -> PaymentResult:
        body: Dict[str, Any] = {
            "order_id": order.order_id,
            "amount": _money(order.amount),
            "currency": order.currency,
        }
        body.update(await self._build_payload(order, method_data or {}))

        response = await self.processor.process_payment(self.method_type, body)
        logger.info(
            "Payment processed",
            extra={
                "order_id": order.order_id,
                "method_type": self.method_type.value,
                "status": response.status.value,
            },
        )
        return self._to_result(order, body, response)

    def _to_result(self, order: Order, body: Dict[str, Any], response: GatewayResponse) -> PaymentResult:
        error = None
        if response.status == PaymentStatus.FAILURE:
            error = PaymentError(
                code="PAYMENT_DECLINED",
                message=response.message or _DECLINE_MESSAGE,
                category="issuer",
                retryable=True,
            )
        return PaymentResult(
            status=response.status,
            amount=to_decimal(body["amount"]),
            currency=order.currency,
            method_type=self.method_type,
            payment_id=response.transaction_id,
            message=response.message,
            error=error,
            details=self._result_details(body),
        )


class CardHandler(MethodHandler):
    """Saved-card payments by token and CVV"""

    method_type = PaymentMethodType.CARD

    def __init__(self, processor: PaymentProcessor, catalog: MethodCatalog):
        super().__init__(processor)
        self.catalog = catalog
        self._cards: Dict[str, List[SavedCard]] = {}

    async def _saved_cards(self, order: Order) -> List[SavedCard]:
        if not order.customer_id:
            return []
        if order.customer_id not in self._cards:
            self._cards[order.customer_id] = list(await self.catalog.list_saved_cards(order.customer_id))
        return self._cards[order.customer_id]

    async def prepare(self, order: Order) -> PresentationData:
        cards = await self._saved_cards(order)
        usable = [card for card in cards if not card.is_expired()]
        return PresentationData(
            method_type=self.method_type,
            options=usable,
            details={"expired_count": len(cards) - len(usable)},
        )

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        token_id = method_data.get("token_id")
        cvv = str(method_data.get("cvv") or "")

        card = next((c for c in await self._saved_cards(order) if c.token_id == token_id), None)
        if card is None:
            raise ValidationError("Select a saved card")
        if card.is_expired():
            raise ValidationError(f"Card ending {card.last4} has expired")
        if not (cvv.isdigit() and 3 <= len(cvv) <= 4):
            raise ValidationError("Enter a valid 3 or 4 digit CVV")

        return {"token_id": card.token_id, "cvv": cvv}


class UPIHandler(MethodHandler):
    """UPI by app intent, QR, or virtual payment address"""

    method_type = PaymentMethodType.UPI
    modes = ("intent", "qr", "vpa")

    def __init__(self, processor: PaymentProcessor, apps: Sequence[UPIApp] = DEFAULT_UPI_APPS):
        super().__init__(processor)
        self.apps = list(apps)

    async def prepare(self, order: Order) -> PresentationData:
        return PresentationData(method_type=self.method_type, options=self.apps, details={"modes": list(self.modes)})

    @staticmethod
    def is_valid_vpa(vpa: str) -> bool:
        return "@" in vpa and len(vpa) > 5

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        mode = method_data.get("mode", "intent")
        if mode not in self.modes:
            raise ValidationError(f"Unsupported UPI mode: {mode}")

        if mode == "vpa":
            vpa = str(method_data.get("vpa") or "").strip()
            if not self.is_valid_vpa(vpa):
                raise ValidationError("Enter a valid UPI ID (e.g. name@bank)")
            return {"mode": mode, "vpa": vpa}

        if mode == "intent":
            app_id = method_data.get("app_id")
            if app_id not in {app.id for app in self.apps}:
                raise ValidationError("Select a UPI app")
            return {"mode": mode, "app_id": app_id}

        return {"mode": mode}


class NetBankingHandler(MethodHandler):
    """Redirect-based internet banking"""

    method_type = PaymentMethodType.NETBANKING

    def __init__(self, processor: PaymentProcessor, banks: Sequence[Bank] = DEFAULT_BANKS):
        super().__init__(processor)
        self.banks = list(banks)

    async def prepare(self, order: Order) -> PresentationData:
        popular = [b for b in self.banks if b.code in POPULAR_BANK_CODES and b.available]
        others = [b for b in self.banks if b.code not in POPULAR_BANK_CODES]
        return PresentationData(
            method_type=self.method_type,
            options=self.banks,
            details={"popular": popular, "others": others},
        )

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        code = method_data.get("bank_code")
        bank = next((b for b in self.banks if b.code == code), None)
        if bank is None:
            raise ValidationError("Select a bank")
        if not bank.available:
            raise ValidationError(f"{bank.name} is temporarily unavailable")
        return {"bank_code": bank.code, "bank_name": bank.name}


class WalletHandler(MethodHandler):
    """Prepaid wallet debits, bounded by each wallet's transaction limit"""

    method_type = PaymentMethodType.WALLET

    def __init__(self, processor: PaymentProcessor, wallets: Sequence[WalletProvider] = DEFAULT_WALLETS):
        super().__init__(processor)
        self.wallets = list(wallets)

    async def prepare(self, order: Order) -> PresentationData:
        amount = to_decimal(order.amount)
        usable = [w for w in self.wallets if w.available and amount <= w.max_transaction_limit]
        return PresentationData(method_type=self.method_type, options=usable)

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        wallet_id = method_data.get("wallet_id")
        wallet = next((w for w in self.wallets if w.id == wallet_id), None)
        if wallet is None:
            raise ValidationError("Wallet provider not found")
        if not wallet.available:
            raise ValidationError(f"{wallet.name} is temporarily unavailable")
        if to_decimal(order.amount) > wallet.max_transaction_limit:
            raise ValidationError(
                f"Transaction amount exceeds wallet limit of {format_amount(wallet.max_transaction_limit)}"
            )
        return {"wallet_id": wallet.id}


class EMIHandler(MethodHandler):
    """EMI / BNPL payments backed by the EMI engine"""

    method_type = PaymentMethodType.BNPL

    def __init__(self, processor: PaymentProcessor, provider_source: EMIProviderSource):
        super().__init__(processor)
        self.provider_source = provider_source
        self._providers: Optional[List[EMIProvider]] = None

    async def _load_providers(self) -> List[EMIProvider]:
        if self._providers is None:
            self._providers = list(await self.provider_source.get_providers())
        return self._providers

    async def prepare(self, order: Order) -> PresentationData:
        eligibility = check_eligibility(order.amount)
        if not eligibility.eligible:
            return PresentationData(method_type=self.method_type, details={"eligible": False, "reason": eligibility.reason})

        providers = await self._load_providers()
        try:
            plans = generate_plans(order.amount, providers)
        except NoEligiblePlansError as e:
            return PresentationData(
                method_type=self.method_type,
                details={"eligible": False, "reason": e.user_message, "range_reason": e.reason},
            )
        return PresentationData(method_type=self.method_type, options=plans, details={"eligible": True})

    async def _resolve_plan(self, order: Order, method_data: Mapping[str, Any]) -> EMIPlan:
        eligibility = check_eligibility(order.amount)
        if not eligibility.eligible:
            raise ValidationError(eligibility.reason)

        providers = await self._load_providers()
        plan = method_data.get("plan")

        if isinstance(plan, EMIPlan):
            result = validate_plan(plan, providers)
            if not result.valid:
                raise ValidationError("EMI plan is not valid", errors=result.errors)
            provider_id, tenure = plan.provider_id, plan.tenure
        else:
            provider_id, tenure = method_data.get("provider_id"), method_data.get("tenure")

        provider = next((p for p in providers if p.id == provider_id), None)
        if provider is None:
            raise ValidationError("Invalid EMI provider")
        expected = next((p for p in generate_provider_plans(order.amount, provider) if p.tenure == tenure), None)
        if expected is None:
            raise ValidationError(f"{provider.name} does not offer a {tenure}-month EMI for this amount")
        if isinstance(plan, EMIPlan) and plan != expected:
            raise ValidationError("EMI plan does not match the order amount")
        return expected

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        plan = await self._resolve_plan(order, method_data)
        schedule = generate_installment_schedule(plan)
        return {
            "provider_id": plan.provider_id,
            "plan_id": plan.plan_id,
            "tenure": plan.tenure,
            "interest_rate": str(plan.interest_rate),
            "emi_amount": _money(plan.emi_amount),
            "total_amount": _money(plan.total_amount),
            "processing_fee": _money(plan.processing_fee),
            "installments": [
                {"due_date": inst.due_date.isoformat(), "amount": _money(inst.amount)} for inst in schedule
            ],
        }

    def _result_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        installments = payload["installments"]
        return {
            "plan_id": payload["plan_id"],
            "total_installments": len(installments),
            "monthly_amount": payload["emi_amount"],
            "first_payment_date": installments[0]["due_date"],
            "next_payment_date": installments[1]["due_date"] if len(installments) > 1 else None,
        }


class FXDebitCardHandler(MethodHandler):
    """FX debit card issuance, authorized with the customer's MPIN"""

    method_type = PaymentMethodType.FX_DEBIT_CARD

    def __init__(
        self,
        processor: PaymentProcessor,
        verifier: SecretVerifier,
        variants: Sequence[FXCardVariant] = DEFAULT_FX_VARIANTS,
        insurance_price: Optional[Decimal] = None,
    ):
        super().__init__(processor)
        self.verifier = verifier
        self.variants = list(variants)
        self.insurance_price = quantize(
            settings.fx_insurance_price if insurance_price is None else insurance_price
        )
        self._gate: Optional[AuthorizationGate] = None

    @property
    def gate(self) -> Optional[AuthorizationGate]:
        return self._gate

    def begin_authorization(self) -> AuthorizationGate:
        """Start MPIN entry with a fresh attempt budget"""
        self._gate = AuthorizationGate(self.verifier, SecretPolicy.mpin())
        return self._gate

    async def prepare(self, order: Order) -> PresentationData:
        return PresentationData(
            method_type=self.method_type,
            options=self.variants,
            details={"insurance_price": self.insurance_price},
        )

    def calculate_total(self, variant_ids: Iterable[str], travel_insurance: bool = False) -> Decimal:
        prices = {v.id: v.price for v in self.variants}
        unknown = [v for v in variant_ids if v not in prices]
        if unknown:
            raise InvalidInputError(f"Unknown card variants: {', '.join(unknown)}")
        total = sum((prices[v] for v in variant_ids), Decimal("0"))
        if travel_insurance:
            total += self.insurance_price
        return quantize(total)

    async def _build_payload(self, order: Order, method_data: Mapping[str, Any]) -> Dict[str, Any]:
        variant_ids = list(method_data.get("variant_ids") or [])
        if not variant_ids:
            raise ValidationError("Select at least one card")
        try:
            total = self.calculate_total(variant_ids, bool(method_data.get("travel_insurance")))
        except InvalidInputError as e:
            raise ValidationError(e.user_message) from e

        if self._gate is None or not self._gate.authorized:
            raise ValidationError("MPIN authorization required")

        return {
            "amount": _money(total),
            "variant_ids": variant_ids,
            "travel_insurance": bool(method_data.get("travel_insurance")),
        }

    def _result_details(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"variant_ids": payload["variant_ids"], "travel_insurance": payload["travel_insurance"]}


def build_handlers(
    processor: PaymentProcessor,
    catalog: MethodCatalog,
    verifier: SecretVerifier,
    provider_source: EMIProviderSource,
) -> Dict[PaymentMethodType, MethodHandler]:
    """Dispatch table with one handler per payment type, for a single checkout session"""
    handlers = [
        CardHandler(processor, catalog),
        UPIHandler(processor),
        NetBankingHandler(processor),
        WalletHandler(processor),
        EMIHandler(processor, provider_source),
        FXDebitCardHandler(processor, verifier),
    ]
    return {handler.method_type: handler for handler in handlers}
