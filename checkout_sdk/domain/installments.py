"""Repayment schedule generation for EMI plans"""

from datetime import date
from typing import List

from checkout_sdk.config import settings
from checkout_sdk.domain.models import EMIPlan, Installment
from checkout_sdk.utils.date_utils import add_months, next_due_date


def generate_installment_schedule(
    plan: EMIPlan,
    start_date: date | None = None,
    due_day: int | None = None,
) -> List[Installment]:
    """
    Generate the monthly repayment schedule for an EMI plan.

    Requirements:
    - One installment per month of tenure, each for plan.emi_amount
    - First installment falls due on `due_day` of the month after start_date
    - The processing fee is charged upfront, not spread over installments

    Args:
        plan: Plan produced by the EMI engine
        start_date: Purchase date (default: today)
        due_day: Day of month installments fall due (default: settings.emi_due_day)

    Returns:
        List of Installment objects with due dates and amounts

    Example:
        6-month plan bought 2024-01-20 -> due 2024-02-05, 2024-03-05, ... 2024-07-05
    """
    if plan.tenure <= 0:
        return []

    start_date = start_date or date.today()
    due_day = due_day or settings.emi_due_day
    first_due = next_due_date(start_date, due_day)

    return [
        Installment(due_date=add_months(first_due, i), amount=plan.emi_amount)
        for i in range(plan.tenure)
    ]
