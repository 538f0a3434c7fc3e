"""Pieces shared by the fixed-step generator and the weekday walk."""
import calendar
import dataclasses
from datetime import date, datetime, time, timedelta

from recurrence.identity import instance_id
from recurrence.rules import (
    OVERRIDABLE_FIELDS,
    UNIT_DAYS,
    UNIT_MONTHS,
    UNIT_WEEKS,
    UNIT_YEARS,
)

# Upper bound on occurrences for a series with no end_after_occurrences.
SAFETY_CAP = 100


def normalize_window(window_start, window_end):
    """
    Turn window bounds into datetimes.

    A bare date start means the beginning of that day and a bare date end means
    the last instant of that day. Datetimes are used as given.
    """
    return _as_datetime(window_start, time.min), _as_datetime(window_end, time.max)


def _as_datetime(value, default_time):
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, default_time)
    raise TypeError(f"expected date or datetime, got {type(value).__name__}")


def effective_cap(entry) -> int:
    limit = entry.max_occurrences
    return limit if limit else SAFETY_CAP


def within_end_date(entry, start) -> bool:
    end_date = entry.effective_end_date
    if end_date is None:
        return True
    if isinstance(end_date, datetime):
        return start <= end_date
    return start.date() <= end_date


def fits_calendar(entry, start) -> bool:
    """False when an occurrence at ``start`` would end past the last representable datetime."""
    try:
        start + entry.duration
    except OverflowError:
        return False
    return True


def shift(value, unit, amount):
    """Move a datetime by ``amount`` units; month and year moves clamp to the month's last day."""
    if unit == UNIT_DAYS:
        return value + timedelta(days=amount)
    if unit == UNIT_WEEKS:
        return value + timedelta(weeks=amount)
    if unit == UNIT_MONTHS:
        return _add_months(value, amount)
    if unit == UNIT_YEARS:
        return _add_months(value, amount * 12)
    raise ValueError(f"unknown unit {unit!r}")


def _add_months(value, months):
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    _, last_dom = calendar.monthrange(year, month)
    return value.replace(year=year, month=month, day=min(value.day, last_dom))


def collect(entry, slots, window_start, window_end):
    """
    Materialise the slots that start inside the window.

    ``slots`` yields ``(ordinal, start)`` in ascending order from the first
    occurrence of the series; iteration stops at the first slot past the window.
    """
    occurrences = []
    for ordinal, start in slots:
        if start > window_end:
            break
        if start < window_start:
            continue
        occurrence = build_occurrence(entry, ordinal, start)
        if occurrence is not None:
            occurrences.append(occurrence)
    return occurrences


def build_occurrence(entry, ordinal, start):
    """Copy the definition onto one slot; None when that occurrence was cancelled."""
    exception = entry.exceptions.get(ordinal)
    overrides = {}
    if exception is not None:
        if exception.cancelled:
            return None
        overrides = {k: v for k, v in exception.overrides.items() if k in OVERRIDABLE_FIELDS}
    return dataclasses.replace(
        entry,
        id=instance_id(entry.id, ordinal),
        start_time=start,
        end_time=start + entry.duration,
        original_id=str(entry.id),
        ordinal=ordinal,
        exceptions={},
        **overrides,
    )
