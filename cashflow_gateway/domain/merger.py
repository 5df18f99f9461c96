"""Merge of stored transactions with generated projections"""

from datetime import date
from typing import Dict, Iterable, List

from cashflow_gateway.domain.models import ExpenseRule, IncomeSource, Transaction
from cashflow_gateway.domain.projections import generate_projections


def merge_key(transaction: Transaction) -> str:
    """Occurrence id when known, else `<source_id>-<scheduled_date>`"""
    if transaction.occurrence_id:
        return transaction.occurrence_id
    if transaction.source_id:
        return f"{transaction.source_id}-{transaction.scheduled_date.isoformat()}"
    return transaction.scheduled_date.isoformat()


def merge_with_projections(stored: Iterable[Transaction], projections: Iterable[Transaction]) -> List[Transaction]:
    """
    Overlay stored transactions on projections.

    Requirements:
    - A stored transaction replaces the projection with the same merge key
    - Each stored transaction replaces at most one projection
    - Manual transactions and stored transactions matching no projection are kept
    - Result ordered by effective date
    """
    stored = list(stored)

    # Later records win when several share a key
    stored_by_key: Dict[str, Transaction] = {}
    for transaction in stored:
        if transaction.source_id:
            stored_by_key[merge_key(transaction)] = transaction

    merged: List[Transaction] = []
    for projection in projections:
        merged.append(stored_by_key.pop(merge_key(projection), projection))

    for transaction in stored:
        if not transaction.source_id:
            merged.append(transaction)
        elif stored_by_key.get(merge_key(transaction)) is transaction:
            merged.append(transaction)

    merged.sort(key=lambda t: t.effective_date)
    return merged


def merge_transactions_with_projections(
    stored: Iterable[Transaction],
    income_sources: Iterable[IncomeSource],
    expense_rules: Iterable[ExpenseRule],
    view_start: date,
    view_end: date,
) -> List[Transaction]:
    """Effective transactions for a window: projections with stored records taking precedence"""
    projections = generate_projections(income_sources, expense_rules, view_start, view_end)
    return merge_with_projections(stored, projections)
