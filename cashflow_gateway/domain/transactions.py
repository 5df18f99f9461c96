"""Projected transaction construction"""

from datetime import date
from typing import Optional

from cashflow_gateway.domain.models import (
    OccurrenceOverride,
    PaymentBreakdown,
    ProjectionHandle,
    RecurrenceRule,
    SourceType,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def create_projected_transaction(
    rule: RecurrenceRule,
    scheduled_date: date,
    type: TransactionType,
    source_type: SourceType,
    payment_breakdown: PaymentBreakdown | None = None,
    occurrence_id: str | None = None,
    override: OccurrenceOverride | None = None,
) -> Optional[Transaction]:
    """
    Build the projected transaction for one occurrence of a rule.

    Requirements:
    - A skipped override suppresses the occurrence (returns None)
    - Amount: override amount, else breakdown principal + interest, else rule amount
    - Override date and notes replace the generated ones
    - The projection id and handle are derived from the final scheduled date

    Returns:
        Transaction with status=projected, or None if suppressed
    """
    if override is not None and override.skipped:
        return None

    if override is not None and override.amount is not None:
        amount = override.amount
    elif payment_breakdown is not None:
        amount = payment_breakdown.total_paid
    else:
        amount = rule.amount

    if override is not None and override.scheduled_date is not None:
        scheduled_date = override.scheduled_date

    notes = rule.notes
    if override is not None and override.notes is not None:
        notes = override.notes

    handle = ProjectionHandle(source_id=rule.id, occurrence_id=occurrence_id, scheduled_date=scheduled_date)

    return Transaction(
        id=handle.projection_id,
        name=rule.name,
        type=type,
        category=rule.category,
        source_type=source_type,
        scheduled_date=scheduled_date,
        projected_amount=amount,
        status=TransactionStatus.PROJECTED,
        source_id=rule.id,
        occurrence_id=occurrence_id,
        notes=notes,
        payment_breakdown=payment_breakdown,
        handle=handle,
    )
