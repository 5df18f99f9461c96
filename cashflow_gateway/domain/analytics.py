"""Cash-flow analytics over merged transactions"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from cashflow_gateway.config import settings
from cashflow_gateway.domain.models import (
    Frequency,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from cashflow_gateway.utils.date_utils import last_day_of_month

# Monthly equivalent of one payment at each frequency
MONTHLY_MULTIPLIERS: Dict[Frequency, float] = {
    Frequency.DAILY: 30,
    Frequency.WEEKLY: 52 / 12,
    Frequency.BI_WEEKLY: 26 / 12,
    Frequency.SEMI_MONTHLY: 2,
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 1 / 3,
    Frequency.YEARLY: 1 / 12,
    Frequency.ONE_TIME: 0,
}

DAYS_PER_MONTH = 30


@dataclass
class Runway:
    days: int
    run_out_date: Optional[date]


@dataclass
class CashCrunch:
    date: date
    shortfall: float


@dataclass
class UpcomingBill:
    transaction: Transaction
    days_until_due: int
    can_cover: bool
    shortfall: Optional[float] = None


@dataclass
class Shortfall:
    date: date
    amount: float
    bill_name: str


@dataclass
class BillCoverageReport:
    current_balance: float
    upcoming_bills: List[UpcomingBill]
    total_upcoming: float
    projected_balance: float
    can_cover_all: bool
    first_shortfall: Optional[Shortfall] = None


@dataclass
class VarianceLine:
    projected: float
    actual: float
    variance: float
    variance_percent: float = 0.0


@dataclass
class CategoryVariance:
    category: str
    projected: float
    actual: float
    variance: float


@dataclass
class VarianceReport:
    start: date
    end: date
    income: VarianceLine
    expenses: VarianceLine
    by_category: List[CategoryVariance] = field(default_factory=list)


@dataclass
class MonthlyTotals:
    income: float
    expenses: float
    net: float


@dataclass
class CategoryTotal:
    category: str
    total: float
    percentage: float


@dataclass
class BalanceReconciliation:
    current_balance: float
    computed_balance: float
    difference: float
    affected_transactions: List[Transaction]


def _signed_amount(transaction: Transaction) -> float:
    amount = transaction.effective_amount
    return amount if transaction.type == TransactionType.INCOME else -amount


def _by_effective_date(transactions: Iterable[Transaction]) -> Dict[date, List[Transaction]]:
    grouped: Dict[date, List[Transaction]] = defaultdict(list)
    for transaction in transactions:
        if transaction.status != TransactionStatus.SKIPPED:
            grouped[transaction.effective_date].append(transaction)
    return grouped


def get_runway(
    balance: float,
    transactions: Iterable[Transaction],
    today: date | None = None,
    max_days: int | None = None,
) -> Runway:
    """
    Days until the running balance first drops below zero.

    Returns Runway(max_days, None) when the balance holds for the whole horizon.
    """
    today = today or date.today()
    max_days = max_days if max_days is not None else settings.runway_max_days
    by_day = _by_effective_date(transactions)

    for offset in range(max_days):
        day = today + timedelta(days=offset)
        balance += sum(_signed_amount(t) for t in by_day.get(day, []))
        if balance < 0:
            return Runway(days=offset, run_out_date=day)

    return Runway(days=max_days, run_out_date=None)


def get_next_crunch(
    balance: float,
    transactions: Iterable[Transaction],
    today: date | None = None,
    max_days: int | None = None,
) -> Optional[CashCrunch]:
    """First day with expenses that leaves the balance negative, with the shortfall"""
    today = today or date.today()
    max_days = max_days if max_days is not None else settings.crunch_max_days
    by_day = _by_effective_date(transactions)

    for offset in range(max_days):
        day = today + timedelta(days=offset)
        income = 0.0
        expenses = 0.0
        for transaction in by_day.get(day, []):
            if transaction.type == TransactionType.INCOME:
                income += transaction.effective_amount
            else:
                expenses += transaction.effective_amount

        balance = balance + income - expenses
        if expenses > 0 and balance < 0:
            return CashCrunch(date=day, shortfall=abs(balance))

    return None


def get_bill_coverage_report(
    balance: float,
    transactions: Iterable[Transaction],
    today: date | None = None,
    days_ahead: int | None = None,
) -> BillCoverageReport:
    """
    Can the current balance cover each upcoming bill in order?

    Only still-projected transactions dated within days_ahead are considered;
    income in the window tops up the running balance before later bills.
    """
    today = today or date.today()
    days_ahead = days_ahead if days_ahead is not None else settings.bill_coverage_days
    end = today + timedelta(days=days_ahead)

    upcoming = sorted(
        (
            t
            for t in transactions
            if today <= t.effective_date <= end
            and t.status not in (TransactionStatus.COMPLETED, TransactionStatus.SKIPPED)
        ),
        key=lambda t: t.effective_date,
    )

    bills: List[UpcomingBill] = []
    running = balance
    total_bills = 0.0

    for transaction in upcoming:
        amount = transaction.effective_amount
        if transaction.type == TransactionType.INCOME:
            running += amount
            continue

        total_bills += amount
        after = running - amount
        can_cover = after >= 0
        bills.append(
            UpcomingBill(
                transaction=transaction,
                days_until_due=(transaction.scheduled_date - today).days,
                can_cover=can_cover,
                shortfall=None if can_cover else abs(after),
            )
        )
        running = after

    at_risk = [b for b in bills if not b.can_cover]
    first_shortfall = None
    if at_risk:
        first = at_risk[0]
        first_shortfall = Shortfall(
            date=first.transaction.scheduled_date,
            amount=first.shortfall or 0.0,
            bill_name=first.transaction.name,
        )

    return BillCoverageReport(
        current_balance=balance,
        upcoming_bills=bills,
        total_upcoming=total_bills,
        projected_balance=running,
        can_cover_all=not at_risk,
        first_shortfall=first_shortfall,
    )


def _variance_line(projected: float, actual: float) -> VarianceLine:
    variance = actual - projected
    percent = variance / projected * 100 if projected > 0 else 0.0
    return VarianceLine(projected=projected, actual=actual, variance=variance, variance_percent=percent)


def calculate_variance_report(transactions: Iterable[Transaction], start: date, end: date) -> VarianceReport:
    """Projected vs actual amounts of completed transactions scheduled in [start, end]"""
    projected_income = actual_income = 0.0
    projected_expenses = actual_expenses = 0.0
    categories: Dict[str, List[float]] = {}

    for t in transactions:
        if t.status != TransactionStatus.COMPLETED or not start <= t.scheduled_date <= end:
            continue
        actual = t.effective_amount
        if t.type == TransactionType.INCOME:
            projected_income += t.projected_amount
            actual_income += actual
        else:
            projected_expenses += t.projected_amount
            actual_expenses += actual
            totals = categories.setdefault(t.category, [0.0, 0.0])
            totals[0] += t.projected_amount
            totals[1] += actual

    return VarianceReport(
        start=start,
        end=end,
        income=_variance_line(projected_income, actual_income),
        expenses=_variance_line(projected_expenses, actual_expenses),
        by_category=[
            CategoryVariance(category=category, projected=projected, actual=actual, variance=actual - projected)
            for category, (projected, actual) in categories.items()
        ],
    )


def calculate_monthly_totals(transactions: Iterable[Transaction], year: int, month: int) -> MonthlyTotals:
    """Income, expenses and net for a calendar month (month is 1-12)"""
    first = date(year, month, 1)
    last = date(year, month, last_day_of_month(year, month))

    income = 0.0
    expenses = 0.0
    for t in transactions:
        if t.status == TransactionStatus.SKIPPED or not first <= t.effective_date <= last:
            continue
        if t.type == TransactionType.INCOME:
            income += t.effective_amount
        else:
            expenses += t.effective_amount

    return MonthlyTotals(income=income, expenses=expenses, net=income - expenses)


def get_category_breakdown(
    transactions: Iterable[Transaction],
    type: TransactionType | None = None,
) -> List[CategoryTotal]:
    """Totals per category with their share of the grand total, largest first"""
    totals: Dict[str, float] = defaultdict(float)
    grand_total = 0.0

    for t in transactions:
        if t.status == TransactionStatus.SKIPPED:
            continue
        if type is not None and t.type != type:
            continue
        totals[t.category] += t.effective_amount
        grand_total += t.effective_amount

    breakdown = [
        CategoryTotal(
            category=category,
            total=total,
            percentage=total / grand_total * 100 if grand_total > 0 else 0.0,
        )
        for category, total in totals.items()
    ]
    return sorted(breakdown, key=lambda c: c.total, reverse=True)


def compute_balance_from_transactions(initial_balance: float, transactions: Iterable[Transaction]) -> float:
    """Initial balance plus every completed transaction; the source of truth for the current balance"""
    return initial_balance + sum(
        _signed_amount(t) for t in transactions if t.status == TransactionStatus.COMPLETED
    )


def reconcile_balance(
    current_balance: float,
    initial_balance: float,
    transactions: Iterable[Transaction],
) -> BalanceReconciliation:
    transactions = list(transactions)
    computed = compute_balance_from_transactions(initial_balance, transactions)
    return BalanceReconciliation(
        current_balance=current_balance,
        computed_balance=computed,
        difference=current_balance - computed,
        affected_transactions=[t for t in transactions if t.status == TransactionStatus.COMPLETED],
    )


def get_monthly_multiplier(frequency: Frequency) -> float:
    return MONTHLY_MULTIPLIERS.get(frequency, 0)


def prorate_to_date_range(monthly_amount: float, start: date, end: date) -> float:
    """Share of a monthly amount covering [start, end] inclusive, on a 30-day month"""
    days = (end - start).days + 1
    return monthly_amount / DAYS_PER_MONTH * days
