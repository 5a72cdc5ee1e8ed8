"""Unit tests for the EMI engine"""

import dataclasses
import pytest
from decimal import Decimal
from checkout_sdk.domain.emi import (
    best_plan,
    calculate_monthly_payment,
    check_eligibility,
    compare_to_full_payment,
    generate_plans,
    generate_provider_plans,
    sort_plans,
    validate_plan,
)
from checkout_sdk.domain.exceptions import InvalidInputError, InvariantViolationError, NoEligiblePlansError
from tests.fakes import make_provider


def test_monthly_payment_reducing_balance():
    """Test 3-month loan at 12% p.a. (r = 1% per month)"""
    result = calculate_monthly_payment(10000, 12, 3)

    assert result.monthly_payment == Decimal("3400.22")
    assert result.total_amount == Decimal("10200.66")
    assert result.total_interest == Decimal("200.66")


def test_monthly_payment_twelve_months():
    result = calculate_monthly_payment(Decimal("10000"), Decimal("12"), 12)

    assert result.monthly_payment == Decimal("888.49")
    assert result.total_amount == Decimal("10661.88")
    assert result.total_interest == Decimal("661.88")


def test_total_is_exactly_payment_times_tenure():
    result = calculate_monthly_payment("25499.99", "15.99", 18)
    assert result.total_amount == result.monthly_payment * 18
    assert result.total_interest == result.total_amount - Decimal("25499.99")


def test_zero_rate_even_split():
    result = calculate_monthly_payment(12000, 0, 12)

    assert result.monthly_payment == Decimal("1000.00")
    assert result.total_amount == Decimal("12000.00")
    assert result.total_interest == Decimal("0.00")


def test_zero_rate_never_undercharges():
    """Test 10000 / 3 rounds up so the installments cover the principal"""
    result = calculate_monthly_payment(10000, 0, 3)

    assert result.monthly_payment == Decimal("3333.34")
    assert result.total_amount == Decimal("10000.02")
    assert result.total_interest >= 0


@pytest.mark.parametrize(
    "principal,rate,tenure",
    [(0, 12, 3), (-100, 12, 3), (10000, -1, 3), (10000, 12, 0), (10000, 12, -6)],
)
def test_monthly_payment_rejects_bad_input(principal, rate, tenure):
    with pytest.raises(InvalidInputError):
        calculate_monthly_payment(principal, rate, tenure)


def test_generate_plans_sorted_by_monthly_amount(providers):
    plans = generate_plans(10000, providers)

    assert [p.plan_id for p in plans] == [
        "hdfc-emi_12",
        "icici-emi_6",
        "hdfc-emi_6",
        "icici-emi_3",
        "hdfc-emi_3",
    ]
    emis = [p.emi_amount for p in plans]
    assert emis == sorted(emis)


def test_equal_monthly_payments_ordered_by_provider_id():
    """Test identical rate tables from two lenders tie on every tenure"""
    providers = [make_provider(id="sbi-emi"), make_provider(id="axis-emi")]

    plans = generate_plans(10000, providers)

    assert [p.plan_id for p in plans] == [
        "axis-emi_12",
        "sbi-emi_12",
        "axis-emi_6",
        "sbi-emi_6",
        "axis-emi_3",
        "sbi-emi_3",
    ]


def test_equal_monthly_payments_ordered_by_tenure(providers):
    plans = generate_plans(10000, providers)
    same_emi = [dataclasses.replace(p, emi_amount=Decimal("1000.00")) for p in plans]

    ordered = sort_plans(same_emi)

    assert [(p.tenure, p.provider_id) for p in ordered] == [
        (3, "hdfc-emi"),
        (3, "icici-emi"),
        (6, "hdfc-emi"),
        (6, "icici-emi"),
        (12, "hdfc-emi"),
    ]


def test_sorting_is_stable_under_reversal(providers):
    plans = generate_plans(50000, providers + [make_provider(id="axis-emi")])

    assert sort_plans(reversed(plans)) == plans
    assert sort_plans(plans) == plans


@pytest.mark.parametrize("principal", ["1000", "9999.99", "250000"])
@pytest.mark.parametrize("rate", ["0", "10.5", "36"])
@pytest.mark.parametrize("tenure", [1, 7, 24])
def test_monthly_payment_totals(principal, rate, tenure):
    result = calculate_monthly_payment(principal, rate, tenure)

    assert result.total_amount == result.monthly_payment * tenure
    assert result.total_interest >= 0
    assert result.total_interest == result.total_amount - Decimal(principal)


def test_generate_plans_adds_processing_fee(providers):
    plan = next(p for p in generate_plans(10000, providers) if p.plan_id == "hdfc-emi_3")

    assert plan.emi_amount == Decimal("3400.22")
    assert plan.processing_fee == Decimal("99.00")
    assert plan.total_interest == Decimal("200.66")
    assert plan.total_amount == Decimal("10299.66")


def test_generate_plans_skips_disabled_and_out_of_range(providers):
    providers.append(make_provider(id="off", enabled=False))
    plans = generate_plans(400000, providers)

    # ICICI caps at 300000
    assert {p.provider_id for p in plans} == {"hdfc-emi"}


def test_generate_plans_too_small(providers):
    with pytest.raises(NoEligiblePlansError) as exc_info:
        generate_plans(500, providers)

    assert exc_info.value.reason == "too_small"
    assert exc_info.value.user_message == "Minimum EMI amount is ₹1,000"
    assert exc_info.value.min_amount == Decimal("1000")


def test_generate_plans_too_large(providers):
    with pytest.raises(NoEligiblePlansError) as exc_info:
        generate_plans(600000, providers)

    assert exc_info.value.reason == "too_large"
    assert exc_info.value.user_message == "Maximum EMI amount is ₹5,00,000"


def test_generate_plans_gap_between_providers():
    providers = [
        make_provider(id="low", min_amount=Decimal("1000"), max_amount=Decimal("2000")),
        make_provider(id="high", min_amount=Decimal("5000"), max_amount=Decimal("9000")),
    ]
    with pytest.raises(NoEligiblePlansError) as exc_info:
        generate_plans(3000, providers)
    assert exc_info.value.reason == "out_of_range"


def test_generate_plans_no_enabled_providers():
    with pytest.raises(NoEligiblePlansError) as exc_info:
        generate_plans(10000, [make_provider(enabled=False)])
    assert exc_info.value.reason == "no_providers"


def test_generate_plans_rejects_non_positive_amount(providers):
    with pytest.raises(InvalidInputError):
        generate_plans(0, providers)


def test_generate_provider_plans_empty_when_out_of_range():
    assert generate_provider_plans(999, make_provider()) == []


def test_provider_requires_rate_for_each_tenure():
    with pytest.raises(InvalidInputError):
        make_provider(supported_tenures=(3, 9), interest_rates={3: Decimal("12")})


def test_best_plan(providers):
    assert best_plan(generate_plans(10000, providers)).plan_id == "hdfc-emi_12"
    assert best_plan([]) is None


def test_validate_generated_plan(providers):
    for plan in generate_plans(10000, providers):
        result = validate_plan(plan, providers)
        assert result.valid, result.errors
        assert result.errors == []


def test_validate_detects_tampered_emi(providers):
    plan = generate_plans(10000, providers)[0]
    tampered = dataclasses.replace(plan, emi_amount=Decimal("100.00"))

    result = validate_plan(tampered, providers)

    assert not result.valid
    assert "EMI amount does not match total amount for the tenure" in result.errors


def test_validate_tolerates_sub_unit_drift(providers):
    plan = generate_plans(10000, providers)[0]
    drifted = dataclasses.replace(plan, total_amount=plan.total_amount + Decimal("0.50"))
    assert validate_plan(drifted, providers).valid


def test_validate_unknown_provider_and_tenure(providers):
    plan = generate_plans(10000, providers)[0]

    assert "Invalid EMI provider" in validate_plan(dataclasses.replace(plan, provider_id="nope"), providers).errors
    assert "Invalid tenure for selected provider" in validate_plan(
        dataclasses.replace(plan, tenure=9), providers
    ).errors


def test_validate_rate_mismatch(providers):
    plan = next(p for p in generate_plans(10000, providers) if p.plan_id == "hdfc-emi_3")
    result = validate_plan(dataclasses.replace(plan, interest_rate=Decimal("9.99")), providers)

    assert "Interest rate does not match provider rate for this tenure" in result.errors


def test_validate_collects_every_error(providers):
    plan = generate_plans(10000, providers)[0]
    broken = dataclasses.replace(plan, emi_amount=Decimal("0"), total_amount=Decimal("0"), processing_fee=Decimal("-1"))

    result = validate_plan(broken, providers)

    assert "Invalid EMI amount" in result.errors
    assert "Invalid total amount" in result.errors
    assert "Invalid processing fee" in result.errors


def test_compare_to_full_payment(providers):
    plan = next(p for p in generate_plans(10000, providers) if p.plan_id == "hdfc-emi_3")
    comparison = compare_to_full_payment(10000, plan)

    assert comparison.full_payment_cost == Decimal("10000")
    assert comparison.emi_total_cost == Decimal("10299.66")
    assert comparison.extra_cost == Decimal("299.66")
    assert comparison.extra_cost_percent == Decimal("3.00")


def test_compare_rejects_plan_cheaper_than_order(providers):
    plan = generate_plans(10000, providers)[0]
    with pytest.raises(InvariantViolationError):
        compare_to_full_payment(20000, plan)


def test_eligibility_amount_bounds():
    assert check_eligibility(500).reason == "Minimum EMI amount is ₹1,000"
    assert not check_eligibility(600000).eligible
    assert check_eligibility(10000).eligible


def test_eligibility_credit_score():
    result = check_eligibility(10000, credit_score=600)

    assert not result.eligible
    assert result.reason == "Credit score too low for EMI (minimum 650)"
    assert check_eligibility(10000, credit_score=650).eligible


def test_eligibility_income_ratio():
    """Test reference EMI (12 months at 12%) capped at half of monthly income"""
    # 100000 over 12 months at 12% is 8884.88 per month
    assert not check_eligibility(100000, monthly_income=10000).eligible
    assert check_eligibility(100000, monthly_income=20000).eligible
    assert check_eligibility(100000, monthly_income=10000).reason.startswith("Estimated EMI of ₹8,885")
