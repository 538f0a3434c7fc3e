"""
Recurrence rule model: how a calendar entry repeats.

All datetimes are naive local time. Weekday indices follow the calendar UI
convention: 0 = Sunday ... 6 = Saturday.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

PATTERN_NONE = 'none'
PATTERN_DAILY = 'daily'
PATTERN_WEEKLY = 'weekly'
PATTERN_MONTHLY = 'monthly'
PATTERN_YEARLY = 'yearly'
PATTERN_CUSTOM = 'custom'

RECURRING_PATTERNS = (
    PATTERN_NONE,
    PATTERN_DAILY,
    PATTERN_WEEKLY,
    PATTERN_MONTHLY,
    PATTERN_YEARLY,
    PATTERN_CUSTOM,
)

UNIT_DAYS = 'days'
UNIT_WEEKS = 'weeks'
UNIT_MONTHS = 'months'
UNIT_YEARS = 'years'

RECURRENCE_UNITS = (UNIT_DAYS, UNIT_WEEKS, UNIT_MONTHS, UNIT_YEARS)

# Payload fields a single occurrence may override.
OVERRIDABLE_FIELDS = ('title', 'description', 'location', 'notes', 'color')

# Largest end_after_occurrences a rule may ask for.
MAX_END_AFTER_OCCURRENCES = 1000


def sunday_weekday(value) -> int:
    """Weekday index with Sunday as 0 (Python's weekday() has Monday as 0)."""
    return (value.weekday() + 1) % 7


@dataclass(frozen=True)
class CustomRecurring:
    interval: int = 1
    unit: str = UNIT_WEEKS
    selected_days: Tuple[int, ...] = ()
    end_date: Optional[date] = None
    end_after_occurrences: Optional[int] = None

    def __post_init__(self):
        # Keep weekday sets canonical so equal rules compare equal.
        object.__setattr__(self, 'selected_days', tuple(sorted(set(self.selected_days or ()))))

    @property
    def uses_weekdays(self) -> bool:
        return bool(self.selected_days)

    def to_dict(self):
        return {
            'interval': self.interval,
            'unit': self.unit,
            'selected_days': list(self.selected_days),
            'end_date': self.end_date.isoformat() if isinstance(self.end_date, date) else self.end_date,
            'end_after_occurrences': self.end_after_occurrences,
        }


@dataclass(frozen=True)
class OccurrenceException:
    """A per-occurrence change: the occurrence is either cancelled or has payload overrides."""
    ordinal: int
    cancelled: bool = False
    overrides: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CalendarEntry:
    """
    A stored event definition, or one occurrence generated from it.

    Definitions have ``original_id`` and ``ordinal`` set to None. Generated
    occurrences carry the synthetic id plus the id and zero-based ordinal of the
    definition they came from.
    """
    id: str
    start_time: datetime
    end_time: datetime
    title: str = ''
    description: str = ''
    location: Optional[str] = None
    notes: Optional[str] = None
    color: str = 'blue'
    all_day: bool = False
    is_recurring: bool = False
    recurring_pattern: str = PATTERN_NONE
    custom_recurring: Optional[CustomRecurring] = None
    exceptions: Mapping[int, OccurrenceException] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)
    original_id: Optional[str] = None
    ordinal: Optional[int] = None

    @property
    def duration(self):
        return self.end_time - self.start_time

    @property
    def repeats(self) -> bool:
        return bool(self.is_recurring) and self.recurring_pattern != PATTERN_NONE

    @property
    def effective_end_date(self) -> Optional[date]:
        return self.custom_recurring.end_date if self.custom_recurring else None

    @property
    def max_occurrences(self) -> Optional[int]:
        return self.custom_recurring.end_after_occurrences if self.custom_recurring else None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'original_id': self.original_id,
            'ordinal': self.ordinal,
            'is_instance': self.original_id is not None,
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'notes': self.notes,
            'color': self.color,
            'all_day': self.all_day,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'is_recurring': self.is_recurring,
            'recurring_pattern': self.recurring_pattern,
            'custom_recurring': self.custom_recurring.to_dict() if self.custom_recurring else None,
        }
        data.update(self.extra)
        return data


def rule_problems(entry):
    """
    Return a list of human-readable problems with the entry's recurrence rule.

    An empty list means the rule can be expanded. Entries that do not repeat
    never have problems.
    """
    if not entry.repeats:
        return []
    problems = []
    pattern = entry.recurring_pattern
    if pattern not in RECURRING_PATTERNS:
        problems.append(f"unknown recurring pattern {pattern!r}")
        return problems
    if entry.end_time < entry.start_time:
        problems.append('end_time is before start_time')

    custom = entry.custom_recurring
    if pattern == PATTERN_CUSTOM and custom is None:
        problems.append('custom pattern without custom_recurring')
        return problems
    if custom is None:
        return problems

    if not isinstance(custom.interval, int) or custom.interval < 1:
        problems.append(f"interval must be a positive integer, got {custom.interval!r}")
    if pattern == PATTERN_CUSTOM and not custom.uses_weekdays and custom.unit not in RECURRENCE_UNITS:
        problems.append(f"unknown unit {custom.unit!r}")
    bad_days = [d for d in custom.selected_days if not isinstance(d, int) or not 0 <= d <= 6]
    if bad_days:
        problems.append(f"weekday indices out of range: {bad_days}")
    limit = custom.end_after_occurrences
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 1):
        problems.append(f"end_after_occurrences must be positive, got {limit!r}")
    elif limit is not None and limit > MAX_END_AFTER_OCCURRENCES:
        problems.append(f"end_after_occurrences may be at most {MAX_END_AFTER_OCCURRENCES}, got {limit}")
    if custom.end_date is not None and not isinstance(custom.end_date, date):
        problems.append(f"end_date is not a date: {custom.end_date!r}")
    return problems
