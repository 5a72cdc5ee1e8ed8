"""Date manipulation utilities"""

import calendar
from datetime import date


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_due_date(from_date: date, due_day: int) -> date:
    """First due date: the given day of the month after from_date"""
    following = add_months(from_date.replace(day=1), 1)
    last_day = calendar.monthrange(following.year, following.month)[1]
    return following.replace(day=min(due_day, last_day))
