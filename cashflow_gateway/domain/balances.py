"""Day-by-day balance forecast"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

from cashflow_gateway.config import settings
from cashflow_gateway.domain.exceptions import InvalidDateRangeError
from cashflow_gateway.domain.models import (
    BalanceStatus,
    DayBalance,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from cashflow_gateway.utils.date_utils import generate_date_range


def get_balance_status(balance: float, warning_threshold: float | None = None) -> BalanceStatus:
    """danger below zero, warning below the threshold, safe otherwise"""
    threshold = warning_threshold if warning_threshold is not None else settings.default_warning_threshold
    if balance < 0:
        return BalanceStatus.DANGER
    if balance < threshold:
        return BalanceStatus.WARNING
    return BalanceStatus.SAFE


def calculate_daily_balances(
    baseline: float,
    transactions: Iterable[Transaction],
    start: date,
    end: date,
    warning_threshold: float | None = None,
) -> Dict[date, DayBalance]:
    """
    Walk [start, end] and derive each day's opening and closing balance.

    Requirements:
    - Day one opens at the baseline; every later day opens at the previous close
    - closing = opening + income - expenses, using each transaction's effective
      amount on its effective date
    - Skipped transactions contribute nothing but are still listed on their day
    - Transactions dated outside the range are ignored

    Example:
        baseline 500, completed income 200, skipped expense 1000 on day one
        → closing 700
    """
    if start > end:
        raise InvalidDateRangeError(f"Balance range start {start} is after end {end}")

    by_day: Dict[date, List[Transaction]] = defaultdict(list)
    for transaction in transactions:
        by_day[transaction.effective_date].append(transaction)

    balances: Dict[date, DayBalance] = {}
    opening = baseline

    for day in generate_date_range(start, end):
        day_transactions = by_day.get(day, [])
        income = 0.0
        expenses = 0.0

        for transaction in day_transactions:
            if transaction.status == TransactionStatus.SKIPPED:
                continue
            if transaction.type == TransactionType.INCOME:
                income += transaction.effective_amount
            else:
                expenses += transaction.effective_amount

        closing = opening + income - expenses
        balances[day] = DayBalance(
            date=day,
            opening_balance=opening,
            closing_balance=closing,
            total_income=income,
            total_expenses=expenses,
            status=get_balance_status(closing, warning_threshold),
            transactions=list(day_transactions),
        )
        opening = closing

    return balances
