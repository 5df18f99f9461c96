"""Projection generation - expands income and expense rules into projected transactions"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from cashflow_gateway.config import settings
from cashflow_gateway.domain.amortization import calculate_amortization_schedule
from cashflow_gateway.domain.credit_cards import calculate_payoff_schedule, first_due_date
from cashflow_gateway.domain.exceptions import InvalidDateRangeError
from cashflow_gateway.domain.installments import generate_installment_schedule
from cashflow_gateway.domain.models import (
    CreditCardExpense,
    ExpenseRule,
    IncomeSource,
    InstallmentExpense,
    LoanExpense,
    PaymentBreakdown,
    PaymentStrategy,
    RecurrenceRule,
    SourceType,
    Transaction,
    TransactionType,
)
from cashflow_gateway.domain.occurrence_ids import occurrence_id_for_rule
from cashflow_gateway.domain.occurrences import adjust_within_bounds, occurrences_for_rule
from cashflow_gateway.domain.transactions import create_projected_transaction
from cashflow_gateway.utils.date_utils import add_months

logger = logging.getLogger(__name__)


def generate_projections(
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
    view_start: date,
    view_end: date,
) -> List[Transaction]:
    """
    Generate every projected transaction inside [view_start, view_end].

    Inactive rules are skipped. Expense rules dispatch on their kind: loans
    follow their amortization schedule, credit cards their payoff schedule,
    installment plans their installment schedule, and everything else its
    recurrence.

    Returns:
        Projections sorted by scheduled date (stable for equal dates)
    """
    if view_start > view_end:
        raise InvalidDateRangeError(f"Window start {view_start} is after window end {view_end}")

    projections: List[Transaction] = []

    for source in income_sources:
        projections.extend(generate_income_projections(source, view_start, view_end))

    for rule in expense_rules:
        projections.extend(generate_expense_projections(rule, view_start, view_end))

    projections.sort(key=lambda t: t.scheduled_date)

    logger.debug(
        "Projections generated",
        extra={
            "view_start": view_start.isoformat(),
            "view_end": view_end.isoformat(),
            "projection_count": len(projections),
        },
    )
    return projections


def generate_income_projections(source: IncomeSource, view_start: date, view_end: date) -> List[Transaction]:
    return _recurring_projections(source, TransactionType.INCOME, SourceType.INCOME_SOURCE, view_start, view_end)


def generate_expense_projections(rule: ExpenseRule, view_start: date, view_end: date) -> List[Transaction]:
    if not rule.is_active:
        return []

    if isinstance(rule, LoanExpense):
        return generate_loan_projections(rule, view_start, view_end)
    if isinstance(rule, CreditCardExpense):
        return generate_credit_projections(rule, view_start, view_end)
    if isinstance(rule, InstallmentExpense):
        return generate_installment_projections(rule, view_start, view_end)

    return _recurring_projections(rule, TransactionType.EXPENSE, SourceType.EXPENSE_RULE, view_start, view_end)


def generate_loan_projections(rule: LoanExpense, view_start: date, view_end: date) -> List[Transaction]:
    """
    Loan payments from the amortization of the current balance over the
    remaining term, starting payments_made months after the rule's start date.

    The schedule deliberately resumes where the loan stands instead of
    replaying it from start_date, so payments already made are never
    projected again and the first projection carries payment number
    payments_made + 1.
    """
    loan = rule.loan
    if loan.remaining_payments <= 0 or loan.current_balance <= 0:
        return []

    schedule = calculate_amortization_schedule(
        loan.current_balance,
        loan.interest_rate,
        add_months(rule.start_date, loan.payments_made),
        term_months=loan.remaining_payments,
        calculation_type=loan.calculation_type,
    )

    projections = []
    for index, step in enumerate(schedule):
        breakdown = PaymentBreakdown(
            principal_paid=step.principal,
            interest_paid=step.interest,
            remaining_balance=step.remaining_balance,
            payment_number=loan.payments_made + index + 1,
            total_payments=loan.term_months,
            negative_amortization=step.negative_amortization,
        )
        projection = _debt_projection(rule, step.date, breakdown, view_start, view_end)
        if projection is not None:
            projections.append(projection)

    return projections


def generate_credit_projections(rule: CreditCardExpense, view_start: date, view_end: date) -> List[Transaction]:
    """
    Credit card payments on the card's due day, from the payoff schedule of
    its payment strategy.

    Minimum-payment schedules are recomputed from each period's balance, so
    they are only projected credit_projection_months ahead.
    """
    credit = rule.credit
    if credit.current_balance <= 0:
        return []

    horizon = None
    if credit.payment_strategy == PaymentStrategy.MINIMUM:
        horizon = settings.credit_projection_months

    schedule = calculate_payoff_schedule(
        credit,
        first_due_date(rule.start_date, credit.due_date),
        max_months=horizon,
    )

    projections = []
    for month in schedule:
        breakdown = PaymentBreakdown(
            principal_paid=month.principal,
            interest_paid=month.interest,
            remaining_balance=month.remaining_balance,
            payment_number=month.month,
            total_payments=0,
            negative_amortization=month.negative_amortization,
        )
        projection = _debt_projection(rule, month.date, breakdown, view_start, view_end)
        if projection is not None:
            projections.append(projection)

    return projections


def generate_installment_projections(rule: InstallmentExpense, view_start: date, view_end: date) -> List[Transaction]:
    projections = []
    for installment in generate_installment_schedule(rule.installment, rule.start_date):
        breakdown = PaymentBreakdown(
            principal_paid=installment.amount,
            interest_paid=0.0,
            remaining_balance=installment.remaining_balance,
            payment_number=installment.payment_number,
            total_payments=installment.total_payments,
        )
        projection = _debt_projection(rule, installment.due_date, breakdown, view_start, view_end)
        if projection is not None:
            projections.append(projection)

    return projections


def _recurring_projections(
    rule: RecurrenceRule,
    type: TransactionType,
    source_type: SourceType,
    view_start: date,
    view_end: date,
) -> List[Transaction]:
    projections = []
    for occurrence in occurrences_for_rule(rule, view_start, view_end):
        occurrence_id = occurrence_id_for_rule(rule, occurrence.nominal_date)
        projection = create_projected_transaction(
            rule,
            occurrence.scheduled_date,
            type,
            source_type,
            occurrence_id=occurrence_id,
            override=rule.occurrence_overrides.get(occurrence_id),
        )
        if projection is not None:
            projections.append(projection)

    return projections


def _debt_projection(
    rule: ExpenseRule,
    nominal_date: date,
    breakdown: PaymentBreakdown,
    view_start: date,
    view_end: date,
) -> Optional[Transaction]:
    """Project one monthly debt payment, keyed by the month it belongs to"""
    if rule.end_date is not None and nominal_date > rule.end_date:
        return None

    scheduled = adjust_within_bounds(nominal_date, rule.weekend_adjustment, rule.start_date, rule.end_date)
    if not view_start <= scheduled <= view_end:
        return None

    occurrence_id = occurrence_id_for_rule(rule, nominal_date)
    return create_projected_transaction(
        rule,
        scheduled,
        TransactionType.EXPENSE,
        SourceType.EXPENSE_RULE,
        payment_breakdown=breakdown,
        occurrence_id=occurrence_id,
        override=rule.occurrence_overrides.get(occurrence_id),
    )
