"""
Weekday-set recurrence such as "every 2 weeks on Mon, Wed and Fri".

These rules cannot be expressed as a fixed date increment, so the series is
produced by walking the calendar one day at a time. Weeks run Sunday to
Saturday; with an interval of N only the first week of every N-week block is
eligible.
"""
import logging
from datetime import timedelta

from recurrence.occurrences import collect, effective_cap, fits_calendar, normalize_window, within_end_date
from recurrence.rules import rule_problems, sunday_weekday

logger = logging.getLogger(__name__)


def custom_slots(entry):
    """
    Yield ``(ordinal, start)`` for every occurrence of a weekday-set series.

    The event's own start is always occurrence 0, even when its weekday is not
    one of the selected days; weekday matching starts on the following day.
    """
    custom = entry.custom_recurring
    selected = set(custom.selected_days)
    interval = custom.interval
    cap = effective_cap(entry)

    current = entry.start_time
    if not within_end_date(entry, current) or not fits_calendar(entry, current):
        return
    yield 0, current

    ordinal = 1
    while ordinal < cap:
        try:
            current = current + timedelta(days=1)
            if sunday_weekday(current) == 0 and interval > 1:
                current = current + timedelta(weeks=interval - 1)
        except OverflowError:
            return
        if not within_end_date(entry, current) or not fits_calendar(entry, current):
            return
        if sunday_weekday(current) in selected:
            yield ordinal, current
            ordinal += 1


def expand_custom(entry, window_start, window_end):
    """Occurrences of a weekday-set series that start inside the window."""
    problems = rule_problems(entry)
    if problems or entry.custom_recurring is None or not entry.custom_recurring.uses_weekdays:
        logger.warning("Event %s cannot use weekday expansion: %s", entry.id, '; '.join(problems) or 'no weekdays selected')
        return [entry]
    start, end = normalize_window(window_start, window_end)
    return collect(entry, custom_slots(entry), start, end)


def get_next_custom_occurrence(current, custom):
    """
    Date of the next selected weekday after ``current``.

    Looks later in the same week first, otherwise jumps to the first selected
    weekday of the next eligible week. Returns ``current`` when no weekdays are
    selected.
    """
    if not custom.selected_days:
        return current
    interval = max(int(custom.interval or 1), 1)
    day_of_week = sunday_weekday(current)
    later_this_week = [d for d in custom.selected_days if d > day_of_week]
    if later_this_week:
        return current + timedelta(days=later_this_week[0] - day_of_week)
    days_ahead = (7 - day_of_week) + custom.selected_days[0] + (interval - 1) * 7
    return current + timedelta(days=days_ahead)
