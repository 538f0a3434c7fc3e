"""Small helpers the calendar views use to label and bucket entries."""
from datetime import datetime

from recurrence.rules import (
    PATTERN_CUSTOM,
    PATTERN_DAILY,
    PATTERN_MONTHLY,
    PATTERN_NONE,
    PATTERN_WEEKLY,
    PATTERN_YEARLY,
)

DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

_PATTERN_LABELS = {
    PATTERN_DAILY: 'Daily',
    PATTERN_WEEKLY: 'Weekly',
    PATTERN_MONTHLY: 'Monthly',
    PATTERN_YEARLY: 'Yearly',
}


def format_recurring_pattern(pattern, custom=None):
    if pattern in _PATTERN_LABELS:
        return _PATTERN_LABELS[pattern]
    if pattern != PATTERN_CUSTOM:
        return 'No repeat'
    if custom is None:
        return 'Custom'
    if custom.selected_days:
        names = ', '.join(DAY_NAMES[d] for d in custom.selected_days if 0 <= d <= 6)
        if custom.interval == 1:
            return f"Every {names}"
        return f"Every {custom.interval} weeks on {names}"
    return f"Every {custom.interval} {custom.unit}"


def should_show_recurring_indicator(entry):
    """Originals that repeat and the occurrences generated from them both get the indicator."""
    return bool(entry.is_recurring) and entry.recurring_pattern != PATTERN_NONE


def entries_for_date(entries, day):
    return [e for e in entries if e.start_time.date() == day]


def all_day_entries_for_date(entries, day):
    return [e for e in entries_for_date(entries, day) if e.all_day]


def timed_entries_for_date(entries, day):
    return [e for e in entries_for_date(entries, day) if not e.all_day]


def has_entries_on_date(entries, day, all_day_only=False):
    matches = all_day_entries_for_date(entries, day) if all_day_only else entries_for_date(entries, day)
    return bool(matches)


def upcoming_entries(entries, now=None, limit=4):
    now = now or datetime.now()
    future = sorted((e for e in entries if e.start_time > now), key=lambda e: e.start_time)
    return future[:limit]
