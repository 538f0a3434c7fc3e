"""
Occurrence generation for a single calendar entry.

Ordinals count from the series' true first occurrence, not from the queried
window, so the synthetic id of a given occurrence is the same whichever window
it is requested through.
"""
import logging

from recurrence.custom import custom_slots, expand_custom, get_next_custom_occurrence
from recurrence.occurrences import (
    SAFETY_CAP,
    build_occurrence,
    collect,
    effective_cap,
    fits_calendar,
    normalize_window,
    shift,
    within_end_date,
)
from recurrence.rules import (
    PATTERN_CUSTOM,
    PATTERN_DAILY,
    PATTERN_MONTHLY,
    PATTERN_WEEKLY,
    PATTERN_YEARLY,
    RECURRENCE_UNITS,
    UNIT_DAYS,
    UNIT_MONTHS,
    UNIT_WEEKS,
    UNIT_YEARS,
    rule_problems,
)

logger = logging.getLogger(__name__)

__all__ = [
    'SAFETY_CAP',
    'generate_occurrences',
    'next_occurrence',
    'next_occurrence_start',
    'occurrence_by_ordinal',
]

_PATTERN_STEPS = {
    PATTERN_DAILY: (UNIT_DAYS, 1),
    PATTERN_WEEKLY: (UNIT_WEEKS, 1),
    PATTERN_MONTHLY: (UNIT_MONTHS, 1),
    PATTERN_YEARLY: (UNIT_YEARS, 1),
}


def _step_for(entry):
    if entry.recurring_pattern == PATTERN_CUSTOM:
        custom = entry.custom_recurring
        return custom.unit, custom.interval
    return _PATTERN_STEPS[entry.recurring_pattern]


def _uses_weekday_walk(entry):
    return (
        entry.recurring_pattern == PATTERN_CUSTOM
        and entry.custom_recurring is not None
        and entry.custom_recurring.uses_weekdays
    )


def _fixed_slots(entry):
    # Each slot is derived from the anchor so month-end clamping never drifts.
    unit, size = _step_for(entry)
    for ordinal in range(effective_cap(entry)):
        try:
            start = shift(entry.start_time, unit, size * ordinal)
        except (OverflowError, ValueError):
            # Ran off the end of the calendar.
            return
        if not within_end_date(entry, start) or not fits_calendar(entry, start):
            return
        yield ordinal, start


def _slots(entry):
    if _uses_weekday_walk(entry):
        return custom_slots(entry)
    return _fixed_slots(entry)


def _expandable(entry):
    if not entry.repeats:
        return False
    problems = rule_problems(entry)
    if problems:
        logger.warning("Treating event %s as non-recurring: %s", entry.id, '; '.join(problems))
        return False
    return True


def generate_occurrences(entry, window_start, window_end):
    """
    Occurrences of ``entry`` that start within ``[window_start, window_end]``.

    Entries that do not repeat, or whose rule is malformed, come back as a
    one-element list holding the entry itself. Everything else is returned in
    ascending start order.
    """
    if not _expandable(entry):
        return [entry]
    if _uses_weekday_walk(entry):
        return expand_custom(entry, window_start, window_end)
    start, end = normalize_window(window_start, window_end)
    return collect(entry, _fixed_slots(entry), start, end)


def next_occurrence(entry, after):
    """First non-cancelled occurrence starting strictly after ``after``, or None."""
    if not _expandable(entry):
        return None
    after, _ = normalize_window(after, after)
    for ordinal, start in _slots(entry):
        if start <= after:
            continue
        occurrence = build_occurrence(entry, ordinal, start)
        if occurrence is not None:
            return occurrence
    return None


def occurrence_by_ordinal(entry, ordinal):
    """The occurrence a synthetic id points at; None if it was cancelled or never happens."""
    if not _expandable(entry) or ordinal < 0:
        return None
    for slot_ordinal, start in _slots(entry):
        if slot_ordinal == ordinal:
            return build_occurrence(entry, slot_ordinal, start)
        if slot_ordinal > ordinal:
            break
    return None


def next_occurrence_start(current, pattern, custom=None):
    """
    Start of the occurrence one step after ``current``.

    Unknown patterns (including ``none``) return ``current`` unchanged.
    """
    if pattern == PATTERN_CUSTOM:
        if custom is None:
            return current
        if custom.uses_weekdays:
            return get_next_custom_occurrence(current, custom)
        if custom.unit not in RECURRENCE_UNITS:
            return current
        return shift(current, custom.unit, max(int(custom.interval or 1), 1))
    step = _PATTERN_STEPS.get(pattern)
    if step is None:
        return current
    unit, size = step
    return shift(current, unit, size)
