from recurrence.batch import expand_all
from recurrence.custom import expand_custom, get_next_custom_occurrence
from recurrence.display import (
    DAY_NAMES,
    all_day_entries_for_date,
    entries_for_date,
    format_recurring_pattern,
    has_entries_on_date,
    should_show_recurring_indicator,
    timed_entries_for_date,
    upcoming_entries,
)
from recurrence.generator import (
    SAFETY_CAP,
    generate_occurrences,
    next_occurrence,
    next_occurrence_start,
    occurrence_by_ordinal,
)
from recurrence.identity import InstanceId, instance_id, is_instance, original_id_of, resolve_original
from recurrence.rules import (
    CalendarEntry,
    CustomRecurring,
    OccurrenceException,
    RECURRENCE_UNITS,
    RECURRING_PATTERNS,
    rule_problems,
)

__all__ = [
    'SAFETY_CAP',
    'CalendarEntry',
    'DAY_NAMES',
    'CustomRecurring',
    'InstanceId',
    'OccurrenceException',
    'RECURRENCE_UNITS',
    'RECURRING_PATTERNS',
    'all_day_entries_for_date',
    'entries_for_date',
    'expand_all',
    'expand_custom',
    'format_recurring_pattern',
    'generate_occurrences',
    'get_next_custom_occurrence',
    'has_entries_on_date',
    'instance_id',
    'is_instance',
    'next_occurrence',
    'next_occurrence_start',
    'occurrence_by_ordinal',
    'original_id_of',
    'resolve_original',
    'rule_problems',
    'should_show_recurring_indicator',
    'timed_entries_for_date',
    'upcoming_entries',
]
