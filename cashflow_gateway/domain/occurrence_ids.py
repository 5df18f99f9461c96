"""
Stable occurrence identifiers.

An occurrence id names the logical period a projection belongs to
(e.g. "rent_2025-01"), so it stays the same when the scheduled date moves
because of weekend adjustment or a user reschedule. It keys occurrence
overrides and stored-transaction matching.
"""

import re
from datetime import date
from typing import List, Optional

from cashflow_gateway.domain.exceptions import InvalidOccurrenceIdError
from cashflow_gateway.domain.models import (
    CreditCardExpense,
    Frequency,
    InstallmentExpense,
    LoanExpense,
    RecurrenceRule,
    ScheduleConfig,
    occurrence_id_matches,
)
from cashflow_gateway.domain.occurrences import DEFAULT_INTERVAL_WEEKS, DEFAULT_SEMI_MONTHLY_DAYS
from cashflow_gateway.utils.date_utils import month_date

MONTHLY_SUFFIX = re.compile(r"_(\d{4})-(\d{2})$")
DAILY_SUFFIX = re.compile(r"_(\d{4}-\d{2}-\d{2})$")


def generate_occurrence_id(
    source_id: str,
    frequency: Frequency,
    nominal_date: date,
    start_date: date,
    schedule: ScheduleConfig | None = None,
) -> str:
    """
    Generate the occurrence id for a rule firing on nominal_date.

    Formats:
    - one-time:     <id>_once
    - daily:        <id>_YYYY-MM-DD
    - weekly:       <id>_YYYY-Www (ISO week)
    - bi-weekly:    <id>_BW<n> (1-based interval index since start)
    - semi-monthly: <id>_YYYY-MM-<slot> (1-based index into sorted specific days)
    - monthly:      <id>_YYYY-MM
    - quarterly:    <id>_YYYY-Qn
    - yearly:       <id>_YYYY
    """
    schedule = schedule or ScheduleConfig()
    year, month = nominal_date.year, nominal_date.month

    if frequency == Frequency.ONE_TIME:
        return f"{source_id}_once"

    if frequency == Frequency.DAILY:
        return f"{source_id}_{nominal_date.isoformat()}"

    if frequency == Frequency.WEEKLY:
        iso_year, iso_week, _ = nominal_date.isocalendar()
        return f"{source_id}_{iso_year}-W{iso_week:02d}"

    if frequency == Frequency.BI_WEEKLY:
        interval_weeks = schedule.interval_weeks or DEFAULT_INTERVAL_WEEKS
        index = bi_weekly_index(start_date, nominal_date, interval_weeks)
        return f"{source_id}_BW{index}"

    if frequency == Frequency.SEMI_MONTHLY:
        slot = semi_monthly_slot(nominal_date, schedule.specific_days or DEFAULT_SEMI_MONTHLY_DAYS)
        return f"{source_id}_{year}-{month:02d}-{slot}"

    if frequency == Frequency.MONTHLY:
        return f"{source_id}_{year}-{month:02d}"

    if frequency == Frequency.QUARTERLY:
        quarter = (month - 1) // 3 + 1
        return f"{source_id}_{year}-Q{quarter}"

    if frequency == Frequency.YEARLY:
        return f"{source_id}_{year}"

    return f"{source_id}_{nominal_date.isoformat()}"


def is_debt_rule(rule: RecurrenceRule) -> bool:
    """Loans, credit cards and installment plans pay monthly whatever their frequency says"""
    return isinstance(rule, (LoanExpense, CreditCardExpense, InstallmentExpense))


def occurrence_id_for_rule(rule: RecurrenceRule, nominal_date: date) -> str:
    if is_debt_rule(rule):
        return generate_occurrence_id(rule.id, Frequency.MONTHLY, nominal_date, rule.start_date)
    return generate_occurrence_id(rule.id, rule.frequency, nominal_date, rule.start_date, rule.schedule)


def bi_weekly_index(start_date: date, current: date, interval_weeks: int = DEFAULT_INTERVAL_WEEKS) -> int:
    diff_days = (current - start_date).days
    return diff_days // (interval_weeks * 7) + 1


def semi_monthly_slot(nominal_date: date, specific_days: List[int]) -> int:
    """1-based slot of the date among the sorted configured days; nearest day wins otherwise"""
    days = sorted(set(specific_days))
    day = nominal_date.day
    if day in days:
        return days.index(day) + 1

    # Clamped days (30 -> 28 in February) land here; ties go to the earlier slot
    nearest = min(range(len(days)), key=lambda i: (abs(days[i] - day), i))
    return nearest + 1


def is_valid_occurrence_id(source_id: str, occurrence_id: str) -> bool:
    return occurrence_id_matches(source_id, occurrence_id)


def validate_occurrence_id(source_id: str, occurrence_id: str) -> str:
    """
    Raises:
        InvalidOccurrenceIdError: if occurrence_id is not a logical-period key for source_id
    """
    if not occurrence_id_matches(source_id, occurrence_id):
        raise InvalidOccurrenceIdError(f"Invalid occurrence id {occurrence_id!r} for source {source_id!r}")
    return occurrence_id


def expected_date_for_occurrence(occurrence_id: str, rule: RecurrenceRule) -> Optional[date]:
    """
    Reconstruct the pattern date an occurrence id stands for.

    Only daily and monthly keys carry enough information; other frequencies
    return None.
    """
    validate_occurrence_id(rule.id, occurrence_id)

    daily = DAILY_SUFFIX.search(occurrence_id)
    if daily and rule.frequency == Frequency.DAILY:
        return date.fromisoformat(daily.group(1))

    monthly = MONTHLY_SUFFIX.search(occurrence_id)
    if monthly and (rule.frequency == Frequency.MONTHLY or is_debt_rule(rule)):
        if isinstance(rule, CreditCardExpense):
            day = rule.credit.due_date
        elif is_debt_rule(rule):
            day = rule.start_date.day
        else:
            day = rule.schedule.day_of_month or rule.start_date.day
        return month_date(int(monthly.group(1)), int(monthly.group(2)), day)

    return None
