"""
Bridge between stored Event rows and the recurrence core.

The custom recurrence rule is kept as a JSON string in the database; this is
the only place that encodes or decodes it.
"""
import json
import logging

from recurrence.display import format_recurring_pattern, should_show_recurring_indicator
from recurrence.rules import CalendarEntry, CustomRecurring, OVERRIDABLE_FIELDS, OccurrenceException
from services.validation_service import parse_day_value, parse_days_of_week

logger = logging.getLogger(__name__)


def custom_recurring_from_payload(raw):
    """Build a CustomRecurring from a request/JSON dict. Returns None for empty input."""
    if not raw or not isinstance(raw, dict):
        return None
    # Accept the camelCase keys the calendar front end sends.
    interval = raw.get('interval', 1)
    try:
        interval = int(interval)
    except (TypeError, ValueError):
        interval = 0
    selected = raw.get('selected_days', raw.get('selectedDays'))
    end_date = raw.get('end_date', raw.get('endDate'))
    end_after = raw.get('end_after_occurrences', raw.get('endAfterOccurrences'))
    # Unparsable end conditions are kept as sent so rule_problems rejects them.
    if end_date not in (None, ''):
        end_date = parse_day_value(end_date) or end_date
    else:
        end_date = None
    if end_after in (None, ''):
        end_after = None
    elif not isinstance(end_after, bool):
        try:
            end_after = int(end_after)
        except (TypeError, ValueError):
            pass
    return CustomRecurring(
        interval=interval,
        unit=str(raw.get('unit') or 'weeks').lower(),
        selected_days=tuple(parse_days_of_week(selected)),
        end_date=end_date,
        end_after_occurrences=end_after,
    )


def encode_custom_recurring(custom):
    if custom is None:
        return None
    return json.dumps(custom.to_dict(), sort_keys=True)


def decode_custom_recurring(raw, event_id=None):
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Unreadable custom_recurring on event %s: %s", event_id, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("custom_recurring on event %s is not an object", event_id)
        return None
    return custom_recurring_from_payload(data)


def exception_from_row(row):
    overrides = {}
    for name in OVERRIDABLE_FIELDS:
        value = getattr(row, name)
        if value is not None:
            overrides[name] = value
    return OccurrenceException(ordinal=row.ordinal, cancelled=bool(row.cancelled), overrides=overrides)


def entry_from_event(event):
    """Convert an Event row (with its exceptions) into a CalendarEntry."""
    return CalendarEntry(
        id=str(event.id),
        start_time=event.start_time,
        end_time=event.end_time,
        title=event.title,
        description=event.description or '',
        location=event.location,
        notes=event.notes,
        color=event.color or 'blue',
        all_day=bool(event.all_day),
        is_recurring=bool(event.is_recurring),
        recurring_pattern=event.recurring_pattern or 'none',
        custom_recurring=decode_custom_recurring(event.custom_recurring, event.id),
        exceptions={row.ordinal: exception_from_row(row) for row in event.exceptions},
        extra={'user_id': event.user_id},
    )


def entries_from_events(events):
    return [entry_from_event(ev) for ev in events]


def serialize_entry(entry):
    data = entry.to_dict()
    data['recurrence_label'] = format_recurring_pattern(entry.recurring_pattern, entry.custom_recurring)
    data['show_recurring_indicator'] = should_show_recurring_indicator(entry)
    return data
