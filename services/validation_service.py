from datetime import date, datetime, time


ALL_DAY_END = time(23, 59, 59)


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ["1", "true", "yes", "on"]


def normalize_tags(raw):
    if not raw:
        return []
    if isinstance(raw, list):
        values = raw
    else:
        values = str(raw).split(",")
    tags = []
    seen = set()
    for t in values:
        tag = " ".join(str(t).split())
        key = tag.lower()
        if tag and key not in seen:
            seen.add(key)
            tags.append(tag)
    return tags


def tags_to_string(tags):
    return ",".join(normalize_tags(tags))


def parse_choice(raw, allowed, default):
    value = str(raw or "").strip().lower()
    return value if value in allowed else default


def parse_positive_int(raw):
    """Return a positive int, or None when missing/invalid."""
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


WEEKDAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]
_WEEKDAY_LOOKUP = dict(
    [(name, i) for i, name in enumerate(WEEKDAY_NAMES)]
    + [(name, i) for i, name in enumerate(
        ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"])]
)


def _weekday_index(value):
    """Sunday-based index for an int or a day name ("Mon", "monday"); None if unknown."""
    if isinstance(value, bool):
        return None
    text = str(value).strip().lower()
    if text in _WEEKDAY_LOOKUP:
        return _WEEKDAY_LOOKUP[text]
    try:
        day = int(text)
    except ValueError:
        return None
    return day if 0 <= day <= 6 else None


def parse_days_of_week(raw):
    """Selected weekdays (Sunday = 0), sorted and deduplicated. Unknown entries are dropped."""
    if raw is None:
        return []
    values = raw if isinstance(raw, (list, tuple, set)) else str(raw).split(",")
    indices = (_weekday_index(v) for v in values)
    return sorted({day for day in indices if day is not None})


def parse_day_value(raw):
    """A date from a date, a datetime or an ISO string; any time part is dropped."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    parsed = parse_datetime_value(raw)
    return parsed.date() if parsed else None


def parse_datetime_value(raw):
    """Parse an ISO date or datetime string into a naive datetime; None on failure."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw.replace(tzinfo=None)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    value = str(raw).strip()
    if value.endswith("Z"):
        value = value[:-1]
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    # Naive local time throughout; drop any offset the client sent.
    return parsed.replace(tzinfo=None)


def normalize_event_times(start, end, all_day=False):
    """
    Apply the event time rules: all-day events span their start date,
    everything else needs end after start.

    Returns (start, end, error) where error is a message or None.
    """
    if start is None:
        return None, None, "start_time is required"
    if all_day:
        day = start.date()
        return datetime.combine(day, time.min), datetime.combine(day, ALL_DAY_END), None
    if end is None:
        return None, None, "end_time is required"
    if end <= start:
        return None, None, "end_time must be after start_time"
    return start, end, None
