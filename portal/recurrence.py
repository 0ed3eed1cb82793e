"""Date math for recurring calendar events.

A recurring event is stored as a parent row plus one child row per later
occurrence. Every occurrence keeps the parent's duration. Monthly and yearly
steps are anchored to the parent's day of month, so a series starting on
Jan 31 runs Feb 28 (or 29), Mar 31, Apr 30, ...
"""

import calendar
from collections.abc import Iterator
from datetime import datetime, timedelta

from .schemas import RecurrenceFrequency

# Upper bound on the size of one series (roughly 2.7 years of daily events)
MAX_OCCURRENCES = 1000


def add_months(value: datetime, months: int, anchor_day: int | None = None) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    day = anchor_day or value.day
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(day, last_day))


def nth_occurrence(start: datetime, frequency: RecurrenceFrequency, n: int) -> datetime:
    """Start of the n-th occurrence (n=0 is the original event)."""
    if frequency == RecurrenceFrequency.DAILY:
        return start + timedelta(days=n)
    if frequency == RecurrenceFrequency.WEEKLY:
        return start + timedelta(weeks=n)
    if frequency == RecurrenceFrequency.BIWEEKLY:
        return start + timedelta(weeks=2 * n)
    if frequency == RecurrenceFrequency.MONTHLY:
        return add_months(start, n, anchor_day=start.day)
    if frequency == RecurrenceFrequency.YEARLY:
        return add_months(start, 12 * n, anchor_day=start.day)
    raise ValueError(f"Unknown recurrence frequency: {frequency}")


def occurrences(
    start: datetime,
    end: datetime,
    frequency: RecurrenceFrequency | str,
    until: datetime,
    limit: int = MAX_OCCURRENCES,
) -> Iterator[tuple[datetime, datetime]]:
    """Yield (start, end) for every occurrence starting on or before `until`.

    The first pair is the original event itself.
    """
    frequency = RecurrenceFrequency(frequency)
    duration = end - start
    for n in range(limit):
        occurrence_start = nth_occurrence(start, frequency, n)
        if occurrence_start > until:
            return
        yield occurrence_start, occurrence_start + duration


def child_occurrences(
    start: datetime,
    end: datetime,
    frequency: RecurrenceFrequency | str,
    until: datetime,
) -> list[tuple[datetime, datetime]]:
    """Occurrences after the first, i.e. the rows stored as children."""
    return list(occurrences(start, end, frequency, until))[1:]
