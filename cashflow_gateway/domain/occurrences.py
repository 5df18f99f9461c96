"""Recurrence expansion - turns a rule's schedule into concrete dates inside a window"""

import logging
from datetime import date, timedelta
from typing import Iterator, List

from cashflow_gateway.config import settings
from cashflow_gateway.domain.exceptions import InvalidDateRangeError
from cashflow_gateway.domain.models import (
    Frequency,
    Occurrence,
    RecurrenceRule,
    ScheduleConfig,
    WeekendAdjustment,
)
from cashflow_gateway.infrastructure.observability.metrics import occurrence_cap_counter
from cashflow_gateway.utils.date_utils import adjust_for_weekend, month_date, shift_month

logger = logging.getLogger(__name__)

DEFAULT_SEMI_MONTHLY_DAYS = [15, 30]
DEFAULT_INTERVAL_WEEKS = 2

# A weekend adjustment moves a date by at most two days, so candidates that
# close to the window can still land inside it.
ADJUSTMENT_LOOKAHEAD = timedelta(days=2)


def calculate_scheduled_occurrences(
    frequency: Frequency,
    start_date: date,
    view_start: date,
    view_end: date,
    end_date: date | None = None,
    schedule: ScheduleConfig | None = None,
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.NONE,
    max_occurrences: int | None = None,
) -> List[Occurrence]:
    """
    Expand a recurrence into occurrences that land inside [view_start, view_end].

    Requirements:
    - Nominal dates never precede start_date nor follow end_date
    - Weekend adjustment is applied to the final date only; if it would push
      the date outside the rule's own bounds the nominal date is kept
    - Every returned scheduled date lies in
      [max(start, view_start), min(end, view_end)]
    - At most max_occurrences results (default from settings); generation
      stops silently once the cap is reached

    Returns:
        Occurrences ordered by scheduled date
    """
    if view_start > view_end:
        raise InvalidDateRangeError(f"Window start {view_start} is after window end {view_end}")

    schedule = schedule or ScheduleConfig()
    cap = max_occurrences if max_occurrences is not None else settings.max_occurrences

    candidate_start = max(start_date, view_start - ADJUSTMENT_LOOKAHEAD)
    candidate_end = view_end + ADJUSTMENT_LOOKAHEAD
    if end_date is not None:
        candidate_end = min(candidate_end, end_date)
    if start_date > candidate_end:
        return []

    occurrences: List[Occurrence] = []
    for nominal in _nominal_dates(frequency, start_date, candidate_start, candidate_end, schedule):
        if nominal < candidate_start:
            continue

        scheduled = adjust_within_bounds(nominal, weekend_adjustment, start_date, end_date)
        if view_start <= scheduled <= view_end:
            if len(occurrences) >= cap:
                occurrence_cap_counter.inc()
                logger.debug(
                    "Occurrence cap reached",
                    extra={"frequency": frequency.value, "cap": cap, "start_date": start_date.isoformat()},
                )
                break
            occurrences.append(Occurrence(nominal_date=nominal, scheduled_date=scheduled))

    occurrences.sort(key=lambda o: o.scheduled_date)
    return occurrences


def calculate_occurrences(
    frequency: Frequency,
    start_date: date,
    view_start: date,
    view_end: date,
    end_date: date | None = None,
    schedule: ScheduleConfig | None = None,
    weekend_adjustment: WeekendAdjustment = WeekendAdjustment.NONE,
    max_occurrences: int | None = None,
) -> List[date]:
    """Dates (weekend-adjusted) at which a recurrence fires inside the window"""
    return [
        o.scheduled_date
        for o in calculate_scheduled_occurrences(
            frequency,
            start_date,
            view_start,
            view_end,
            end_date=end_date,
            schedule=schedule,
            weekend_adjustment=weekend_adjustment,
            max_occurrences=max_occurrences,
        )
    ]


def occurrences_for_rule(
    rule: RecurrenceRule,
    view_start: date,
    view_end: date,
    max_occurrences: int | None = None,
) -> List[Occurrence]:
    """Occurrences of a rule inside the window (empty for inactive rules)"""
    if not rule.is_active:
        return []
    return calculate_scheduled_occurrences(
        rule.frequency,
        rule.start_date,
        view_start,
        view_end,
        end_date=rule.end_date,
        schedule=rule.schedule,
        weekend_adjustment=rule.weekend_adjustment,
        max_occurrences=max_occurrences,
    )


def _nominal_dates(
    frequency: Frequency,
    start: date,
    window_start: date,
    window_end: date,
    schedule: ScheduleConfig,
) -> Iterator[date]:
    """Ascending nominal dates >= start and <= window_end (may begin before window_start)"""
    if frequency == Frequency.ONE_TIME:
        if start <= window_end:
            yield start

    elif frequency == Frequency.DAILY:
        current = max(start, window_start)
        while current <= window_end:
            yield current
            current += timedelta(days=1)

    elif frequency in (Frequency.WEEKLY, Frequency.BI_WEEKLY):
        interval_weeks = 1
        if frequency == Frequency.BI_WEEKLY:
            interval_weeks = schedule.interval_weeks or DEFAULT_INTERVAL_WEEKS
        interval = timedelta(weeks=interval_weeks)

        anchor = align_to_weekday(start, schedule.day_of_week)
        current = _first_step_on_or_after(anchor, interval, window_start)
        while current <= window_end:
            yield current
            current += interval

    elif frequency == Frequency.SEMI_MONTHLY:
        days = sorted(set(schedule.specific_days or DEFAULT_SEMI_MONTHLY_DAYS))
        year, month = window_start.year, window_start.month
        while date(year, month, 1) <= window_end:
            emitted = set()
            for day in days:
                candidate = month_date(year, month, day)
                # [30, 31] both clamp to Feb 28; keep one payment per landed date
                if candidate in emitted:
                    continue
                emitted.add(candidate)
                if start <= candidate <= window_end:
                    yield candidate
            year, month = shift_month(year, month, 1)

    elif frequency == Frequency.MONTHLY:
        day = schedule.day_of_month or start.day
        year, month = window_start.year, window_start.month
        while date(year, month, 1) <= window_end:
            candidate = month_date(year, month, day)
            if start <= candidate <= window_end:
                yield candidate
            year, month = shift_month(year, month, 1)

    elif frequency == Frequency.QUARTERLY:
        day = schedule.day_of_month or start.day
        months_since_start = (window_start.year - start.year) * 12 + window_start.month - start.month
        step = max(0, months_since_start // 3)
        year, month = shift_month(start.year, start.month, step * 3)
        while date(year, month, 1) <= window_end:
            candidate = month_date(year, month, day)
            if start <= candidate <= window_end:
                yield candidate
            year, month = shift_month(year, month, 3)

    elif frequency == Frequency.YEARLY:
        month = schedule.month_of_year or start.month
        day = schedule.day_of_month or start.day
        for year in range(max(start.year, window_start.year), window_end.year + 1):
            candidate = month_date(year, month, day)
            if start <= candidate <= window_end:
                yield candidate

    else:
        raise ValueError(f"Unsupported frequency: {frequency}")


def adjust_within_bounds(
    nominal: date,
    weekend_adjustment: WeekendAdjustment,
    start_date: date,
    end_date: date | None = None,
) -> date:
    """Weekend-adjust a nominal date, keeping it if the move would leave [start_date, end_date]"""
    scheduled = adjust_for_weekend(nominal, weekend_adjustment)
    if scheduled < start_date or (end_date is not None and scheduled > end_date):
        return nominal
    return scheduled


def align_to_weekday(start: date, day_of_week: int | None) -> date:
    """First date on or after start falling on day_of_week (0=Monday); scans at most 7 days"""
    if day_of_week is None:
        return start
    return start + timedelta(days=(day_of_week - start.weekday()) % 7)


def _first_step_on_or_after(anchor: date, interval: timedelta, from_date: date) -> date:
    """Return the first date in the anchor + k*interval series that is >= from_date."""
    if from_date <= anchor:
        return anchor
    steps = (from_date - anchor).days // interval.days
    candidate = anchor + steps * interval
    if candidate < from_date:
        candidate += interval
    return candidate
