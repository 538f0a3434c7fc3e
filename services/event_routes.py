"""Calendar event route handlers. Recurring events are expanded on read."""
from datetime import date, datetime, time, timedelta

from flask import current_app, jsonify, request
from sqlalchemy import or_

from models import db, Event, RecurrenceException
from recurrence import (
    RECURRING_PATTERNS,
    InstanceId,
    expand_all,
    next_occurrence,
    occurrence_by_ordinal,
    rule_problems,
)
from recurrence.display import all_day_entries_for_date, timed_entries_for_date, upcoming_entries
from recurrence.rules import OVERRIDABLE_FIELDS
from services.auth_service import get_current_user
from services.event_store import (
    custom_recurring_from_payload,
    encode_custom_recurring,
    entries_from_events,
    entry_from_event,
    serialize_entry,
)
from services.validation_service import (
    normalize_event_times,
    parse_bool,
    parse_datetime_value,
    parse_positive_int,
)

UPCOMING_WINDOW_DAYS = 366


def _pick(data, *keys):
    for key in keys:
        if key in data:
            return data[key]
    return None


def _has_any(data, *keys):
    return any(key in data for key in keys)


def _month_bounds(day_value):
    first = day_value.replace(day=1)
    next_month = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first, next_month - timedelta(days=1)


def _parse_window_bound(raw, default_time):
    """Window bounds accept YYYY-MM-DD (whole day) or a full ISO datetime."""
    if raw is None or raw == '':
        return None
    raw = str(raw)
    parsed = parse_datetime_value(raw)
    if parsed is None:
        return None
    if len(raw) == 10:
        return datetime.combine(parsed.date(), default_time)
    return parsed


def _load_events_for_window(user_id, window_start, window_end):
    # Recurring definitions may start long before the window.
    return Event.query.filter(
        Event.user_id == user_id,
        Event.start_time <= window_end,
        or_(Event.is_recurring.is_(True), Event.end_time >= window_start)
    ).order_by(Event.start_time.asc(), Event.id.asc()).all()


def _expanded_entries(user_id, window_start, window_end):
    events = _load_events_for_window(user_id, window_start, window_end)
    # Rows whose rule could not be expanded come back as-is and may lie outside the window.
    entries = [
        e for e in expand_all(entries_from_events(events), window_start, window_end)
        if e.start_time <= window_end and e.end_time >= window_start
    ]
    # expand_all keeps per-event order only; the calendar wants one timeline.
    entries.sort(key=lambda e: e.start_time)
    return entries


def _resolve_event_ref(event_ref, user_id):
    """Map a stored id or a synthetic instance id to (event, ordinal or None)."""
    parsed = InstanceId.decode(event_ref)
    if parsed is not None:
        if not parsed.original_id.isdigit():
            return None, None
        event = Event.query.filter_by(id=int(parsed.original_id), user_id=user_id).first()
        return event, parsed.ordinal
    if not str(event_ref).isdigit():
        return None, None
    return Event.query.filter_by(id=int(event_ref), user_id=user_id).first(), None


def _apply_event_payload(event, data, creating=False):
    """Copy validated fields from a request payload onto an Event. Returns an error message or None."""
    if creating or 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            return 'Title is required'
        event.title = title
    if 'description' in data:
        event.description = (data.get('description') or '').strip()
    if 'location' in data:
        event.location = (data.get('location') or '').strip() or None
    if 'notes' in data:
        event.notes = (data.get('notes') or '').strip() or None
    if 'color' in data:
        event.color = (data.get('color') or '').strip() or 'blue'

    if creating or _has_any(data, 'start_time', 'startTime', 'end_time', 'endTime', 'all_day', 'allDay'):
        start = event.start_time
        end = event.end_time
        if _has_any(data, 'start_time', 'startTime'):
            start = parse_datetime_value(_pick(data, 'start_time', 'startTime'))
            if start is None:
                return 'Invalid start_time'
        if _has_any(data, 'end_time', 'endTime'):
            end = parse_datetime_value(_pick(data, 'end_time', 'endTime'))
            if end is None:
                return 'Invalid end_time'
        all_day = event.all_day
        if _has_any(data, 'all_day', 'allDay'):
            all_day = parse_bool(_pick(data, 'all_day', 'allDay'))
        start, end, error = normalize_event_times(start, end, all_day)
        if error:
            return error
        event.start_time, event.end_time, event.all_day = start, end, bool(all_day)

    if _has_any(data, 'is_recurring', 'isRecurring'):
        event.is_recurring = parse_bool(_pick(data, 'is_recurring', 'isRecurring'))
    if _has_any(data, 'recurring_pattern', 'recurringPattern'):
        pattern = str(_pick(data, 'recurring_pattern', 'recurringPattern') or 'none').lower()
        if pattern not in RECURRING_PATTERNS:
            return f"Invalid recurring_pattern: {pattern}"
        event.recurring_pattern = pattern
    if _has_any(data, 'custom_recurring', 'customRecurring'):
        raw_rule = _pick(data, 'custom_recurring', 'customRecurring')
        if raw_rule is not None and not isinstance(raw_rule, dict):
            return 'custom_recurring must be an object'
        event.custom_recurring = encode_custom_recurring(custom_recurring_from_payload(raw_rule))
    if event.recurring_pattern is None:
        event.recurring_pattern = 'none'
    if creating and not _has_any(data, 'is_recurring', 'isRecurring'):
        event.is_recurring = event.recurring_pattern != 'none'
    if event.recurring_pattern == 'none':
        event.is_recurring = False

    # Reject rules the generator would only fall back on.
    problems = rule_problems(entry_from_event(event))
    if problems:
        return '; '.join(problems)
    return None


def _rule_snapshot(event):
    """The stored fields that decide which slot each ordinal points at."""
    return (event.start_time, bool(event.is_recurring), event.recurring_pattern, event.custom_recurring)


def _upsert_exception(event, ordinal, user_id):
    exception = RecurrenceException.query.filter_by(event_id=event.id, ordinal=ordinal).first()
    if not exception:
        exception = RecurrenceException(event_id=event.id, ordinal=ordinal, user_id=user_id)
        db.session.add(exception)
    return exception


def events_collection():
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    if request.method == 'GET':
        start_raw = request.args.get('start')
        end_raw = request.args.get('end')
        if start_raw:
            window_start = _parse_window_bound(start_raw, time.min)
            if not window_start:
                return jsonify({'error': 'Invalid start date'}), 400
        else:
            window_start = datetime.combine(date.today().replace(day=1), time.min)
        if end_raw:
            window_end = _parse_window_bound(end_raw, time.max)
            if not window_end:
                return jsonify({'error': 'Invalid end date'}), 400
        else:
            # Default end to end-of-month for the start day
            _, last_day = _month_bounds(window_start.date())
            window_end = datetime.combine(last_day, time.max)
        if window_end < window_start:
            return jsonify({'error': 'end must be on/after start'}), 400

        entries = _expanded_entries(user.id, window_start, window_end)
        return jsonify({
            'start': window_start.isoformat(),
            'end': window_end.isoformat(),
            'events': [serialize_entry(e) for e in entries]
        })

    data = request.json or {}
    event = Event(user_id=user.id, color='blue', all_day=False, is_recurring=False, recurring_pattern='none')
    error = _apply_event_payload(event, data, creating=True)
    if error:
        return jsonify({'error': error}), 400
    db.session.add(event)
    db.session.commit()
    current_app.logger.info("Created event %s for user %s (pattern=%s)", event.id, user.id, event.recurring_pattern)
    return jsonify(serialize_entry(entry_from_event(event))), 201


def events_for_day():
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    day_obj = parse_datetime_value(request.args.get('date') or date.today().isoformat())
    if not day_obj:
        return jsonify({'error': 'Invalid date'}), 400
    day_value = day_obj.date()
    entries = _expanded_entries(
        user.id,
        datetime.combine(day_value, time.min),
        datetime.combine(day_value, time.max)
    )
    return jsonify({
        'date': day_value.isoformat(),
        'all_day': [serialize_entry(e) for e in all_day_entries_for_date(entries, day_value)],
        'timed': [serialize_entry(e) for e in timed_entries_for_date(entries, day_value)],
    })


def upcoming_events():
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    limit = parse_positive_int(request.args.get('limit')) or current_app.config['UPCOMING_EVENTS_LIMIT']
    now = datetime.now()
    entries = _expanded_entries(user.id, now, now + timedelta(days=UPCOMING_WINDOW_DAYS))
    return jsonify([serialize_entry(e) for e in upcoming_entries(entries, now=now, limit=limit)])


def event_detail(event_ref):
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401

    event, ordinal = _resolve_event_ref(event_ref, user.id)
    if not event:
        return jsonify({'error': 'Event not found'}), 404
    data = request.get_json(silent=True) if request.method in ('PUT', 'DELETE') else None
    data = data or {}
    scope = (request.args.get('scope') or data.get('scope') or 'series').lower()
    instance_scope = ordinal is not None and scope == 'instance'

    if request.method == 'GET':
        original = entry_from_event(event)
        payload = {
            'event': serialize_entry(original),
            'exceptions': [ex.to_dict() for ex in event.exceptions],
        }
        if ordinal is not None:
            occurrence = occurrence_by_ordinal(original, ordinal)
            if occurrence is None:
                return jsonify({'error': 'Occurrence not found'}), 404
            payload['occurrence'] = serialize_entry(occurrence)
        return jsonify(payload)

    if instance_scope and occurrence_by_ordinal(entry_from_event(event), ordinal) is None:
        return jsonify({'error': 'Occurrence not found'}), 404

    if request.method == 'DELETE':
        if instance_scope:
            exception = _upsert_exception(event, ordinal, user.id)
            exception.cancelled = True
            db.session.commit()
            current_app.logger.info("Cancelled occurrence %s of event %s", ordinal, event.id)
            return '', 204
        db.session.delete(event)
        db.session.commit()
        current_app.logger.info("Deleted event %s (whole series)", event_ref)
        return '', 204

    if instance_scope:
        changes = {name: data[name] for name in OVERRIDABLE_FIELDS if name in data}
        if not changes:
            return jsonify({'error': f"Only {', '.join(OVERRIDABLE_FIELDS)} can change on a single occurrence"}), 400
        exception = _upsert_exception(event, ordinal, user.id)
        for name, value in changes.items():
            setattr(exception, name, (str(value).strip() or None) if value is not None else None)
        db.session.commit()
        occurrence = occurrence_by_ordinal(entry_from_event(event), ordinal)
        return jsonify(serialize_entry(occurrence))

    rule_before = _rule_snapshot(event)
    error = _apply_event_payload(event, data)
    if error:
        db.session.rollback()
        return jsonify({'error': error}), 400
    if _rule_snapshot(event) != rule_before and event.exceptions:
        # Ordinals no longer point at the same occurrences once the rule moves.
        current_app.logger.info("Dropping %s exceptions of event %s after rule change", len(event.exceptions), event.id)
        for exception in list(event.exceptions):
            db.session.delete(exception)
    db.session.commit()
    return jsonify(serialize_entry(entry_from_event(event)))


def event_next_occurrence(event_ref):
    user = get_current_user()
    if not user:
        return jsonify({'error': 'No user selected'}), 401
    event, _ = _resolve_event_ref(event_ref, user.id)
    if not event:
        return jsonify({'error': 'Event not found'}), 404
    after_raw = request.args.get('after')
    after = parse_datetime_value(after_raw) if after_raw else datetime.now()
    if after is None:
        return jsonify({'error': 'Invalid after'}), 400
    occurrence = next_occurrence(entry_from_event(event), after)
    return jsonify({
        'after': after.isoformat(),
        'next': serialize_entry(occurrence) if occurrence else None
    })
