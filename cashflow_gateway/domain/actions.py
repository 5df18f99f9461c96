"""
Derivation of what user actions on projections should persist.

Completing or skipping a projection turns it into a stored transaction;
rescheduling one records an occurrence override. These functions compute the
records to write and the updated source rule; persisting them is the caller's
job.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, List, Optional, Tuple

from cashflow_gateway.domain.exceptions import InvalidTransactionStateError, SourceNotFoundError
from cashflow_gateway.domain.models import (
    ExpenseRule,
    IncomeSource,
    InstallmentExpense,
    LoanExpense,
    OccurrenceOverride,
    PaymentBreakdown,
    ProjectionHandle,
    RecurrenceRule,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
    is_projection_id,
)
from cashflow_gateway.domain.occurrence_ids import expected_date_for_occurrence, occurrence_id_for_rule
from cashflow_gateway.domain.projections import generate_expense_projections, generate_income_projections


@dataclass
class ProjectionOutcome:
    """Stored transaction to persist plus the source rule as it should now read"""

    transaction: Transaction
    source: RecurrenceRule


def resolve_handle(projection: Transaction | ProjectionHandle | str) -> ProjectionHandle:
    """Accept a projected transaction, its handle or its projection id string"""
    if isinstance(projection, Transaction):
        if projection.handle is None:
            raise InvalidTransactionStateError(f"Transaction {projection.id} is not a projection")
        return projection.handle
    if isinstance(projection, ProjectionHandle):
        return projection
    return ProjectionHandle.parse(projection)


def find_source(
    source_id: str,
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
) -> Tuple[RecurrenceRule, bool]:
    """
    Look up the rule behind a projection.

    Returns:
        (rule, is_income)

    Raises:
        SourceNotFoundError: if no income source or expense rule has source_id
    """
    for source in income_sources:
        if source.id == source_id:
            return source, True
    for rule in expense_rules:
        if rule.id == source_id:
            return rule, False
    raise SourceNotFoundError(f"Source not found for projection: {source_id}")


def complete_projection(
    projection: Transaction | ProjectionHandle | str,
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
    actual_amount: float,
    actual_date: date | None = None,
    notes: str | None = None,
    transaction_id: str | None = None,
) -> ProjectionOutcome:
    """
    Realize a projection as a completed transaction.

    The stored record keeps the projection's amount and payment breakdown;
    when only an id or handle is given the projection is regenerated for it.
    The occurrence's override is dropped from the source, and loan and
    installment rules have their payment counter advanced.
    """
    handle = resolve_handle(projection)
    source, is_income = find_source(handle.source_id, income_sources, expense_rules)
    occurrence_id = handle.occurrence_id or occurrence_id_for_rule(source, handle.scheduled_date)

    transaction = _stored_transaction(
        source,
        is_income,
        handle.scheduled_date,
        occurrence_id,
        TransactionStatus.COMPLETED,
        notes,
        transaction_id,
        projected=_projected_transaction(projection, source, is_income, handle),
    )
    transaction.actual_amount = actual_amount
    transaction.actual_date = actual_date or handle.scheduled_date

    updated = _without_override(source, occurrence_id)
    if not is_income:
        updated = advance_payment_counter(updated)

    return ProjectionOutcome(transaction=transaction, source=updated)


def skip_projection(
    projection: Transaction | ProjectionHandle | str,
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
    notes: str | None = None,
    transaction_id: str | None = None,
) -> ProjectionOutcome:
    """Record a projection as skipped; it stays listed but no longer moves the balance"""
    handle = resolve_handle(projection)
    source, is_income = find_source(handle.source_id, income_sources, expense_rules)
    occurrence_id = handle.occurrence_id or occurrence_id_for_rule(source, handle.scheduled_date)

    transaction = _stored_transaction(
        source,
        is_income,
        handle.scheduled_date,
        occurrence_id,
        TransactionStatus.SKIPPED,
        notes,
        transaction_id,
        projected=_projected_transaction(projection, source, is_income, handle),
    )
    return ProjectionOutcome(transaction=transaction, source=_without_override(source, occurrence_id))


def reschedule_projection(
    projection: Transaction | ProjectionHandle | str,
    new_date: date,
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
) -> Tuple[str, OccurrenceOverride]:
    """Override that moves one occurrence to new_date, keyed by its occurrence id"""
    handle = resolve_handle(projection)
    source, _ = find_source(handle.source_id, income_sources, expense_rules)
    occurrence_id = handle.occurrence_id or occurrence_id_for_rule(source, handle.scheduled_date)
    return occurrence_id, OccurrenceOverride(scheduled_date=new_date)


def revert_override(
    stored: Transaction,
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
) -> Optional[Tuple[str, OccurrenceOverride]]:
    """
    Override needed to keep a user-moved date when a stored transaction is
    reverted to a projection.

    Returns None when the stored date matches the rule's pattern, when the
    pattern date cannot be reconstructed, or when the source no longer exists.

    Raises:
        InvalidTransactionStateError: if the transaction is itself a projection
    """
    if stored.is_projection or is_projection_id(stored.id):
        raise InvalidTransactionStateError("Transaction is already projected")
    if not stored.occurrence_id or not stored.source_id:
        return None

    try:
        source, _ = find_source(stored.source_id, income_sources, expense_rules)
    except SourceNotFoundError:
        return None

    expected = expected_date_for_occurrence(stored.occurrence_id, source)
    if expected is None or expected == stored.scheduled_date:
        return None
    return stored.occurrence_id, OccurrenceOverride(scheduled_date=stored.scheduled_date)


def ensure_deletable(transaction_id: str) -> None:
    """
    Raises:
        InvalidTransactionStateError: projections are derived and cannot be deleted
    """
    if is_projection_id(transaction_id):
        raise InvalidTransactionStateError("Cannot delete projected transactions")


def advance_payment_counter(rule: RecurrenceRule) -> RecurrenceRule:
    """Count one more payment on a loan or installment plan (capped at the term)"""
    if isinstance(rule, LoanExpense):
        loan = rule.loan
        return replace(rule, loan=replace(loan, payments_made=min(loan.payments_made + 1, loan.term_months)))
    if isinstance(rule, InstallmentExpense):
        plan = rule.installment
        paid = min(plan.installments_paid + 1, plan.installment_count)
        return replace(rule, installment=replace(plan, installments_paid=paid))
    return rule


def _projected_transaction(
    projection: Transaction | ProjectionHandle | str,
    source: RecurrenceRule,
    is_income: bool,
    handle: ProjectionHandle,
) -> Optional[Transaction]:
    """The projection being acted on, regenerated from its rule when only the id is known"""
    if isinstance(projection, Transaction):
        return projection

    day = handle.scheduled_date
    if is_income:
        candidates: List[Transaction] = generate_income_projections(source, day, day)
    else:
        candidates = generate_expense_projections(source, day, day)

    for candidate in candidates:
        if handle.occurrence_id is None or candidate.occurrence_id == handle.occurrence_id:
            return candidate
    return None


def _without_override(source: RecurrenceRule, occurrence_id: str) -> RecurrenceRule:
    if occurrence_id not in source.occurrence_overrides:
        return source
    overrides = {k: v for k, v in source.occurrence_overrides.items() if k != occurrence_id}
    return replace(source, occurrence_overrides=overrides)


def _stored_transaction(
    source: RecurrenceRule,
    is_income: bool,
    scheduled_date: date,
    occurrence_id: str,
    status: TransactionStatus,
    notes: str | None,
    transaction_id: str | None,
    projected: Optional[Transaction] = None,
) -> Transaction:
    amount: float = source.amount
    breakdown: Optional[PaymentBreakdown] = None
    if projected is not None:
        amount = projected.projected_amount
        breakdown = projected.payment_breakdown

    return Transaction(
        id=transaction_id or f"txn_{uuid.uuid4().hex}",
        name=source.name,
        type=TransactionType.INCOME if is_income else TransactionType.EXPENSE,
        category=source.category,
        source_type=SourceType.INCOME_SOURCE if is_income else SourceType.EXPENSE_RULE,
        scheduled_date=scheduled_date,
        projected_amount=amount,
        status=status,
        source_id=source.id,
        occurrence_id=occurrence_id,
        notes=notes,
        payment_breakdown=breakdown,
    )
