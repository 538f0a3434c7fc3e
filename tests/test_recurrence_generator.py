from datetime import date, datetime, timedelta

from recurrence import (
    SAFETY_CAP,
    CalendarEntry,
    CustomRecurring,
    OccurrenceException,
    generate_occurrences,
    next_occurrence,
    next_occurrence_start,
    occurrence_by_ordinal,
)
from recurrence.rules import MAX_END_AFTER_OCCURRENCES


def make_entry(**overrides):
    fields = dict(
        id='1',
        title='Standup',
        start_time=datetime(2024, 1, 1, 9, 0),
        end_time=datetime(2024, 1, 1, 10, 0),
        is_recurring=True,
        recurring_pattern='daily',
    )
    fields.update(overrides)
    return CalendarEntry(**fields)


def starts(occurrences):
    return [o.start_time for o in occurrences]


def test_non_recurring_event_is_passed_through_unchanged():
    entry = make_entry(is_recurring=False)
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 1, 31))
    assert result == [entry]
    assert result[0] is entry
    assert result[0].id == '1'


def test_pattern_none_is_passed_through_even_when_flagged_recurring():
    entry = make_entry(recurring_pattern='none')
    assert generate_occurrences(entry, date(2024, 1, 1), date(2024, 1, 31)) == [entry]


def test_ordinals_count_from_first_occurrence_not_window():
    entry = make_entry()
    result = generate_occurrences(entry, date(2024, 2, 1), date(2024, 2, 2))
    assert [o.id for o in result] == ['1_31', '1_32']
    assert [o.ordinal for o in result] == [31, 32]
    assert starts(result) == [datetime(2024, 2, 1, 9, 0), datetime(2024, 2, 2, 9, 0)]
    assert all(o.original_id == '1' for o in result)


def test_safety_cap_bounds_unterminated_series():
    entry = make_entry()
    result = generate_occurrences(entry, date(2024, 1, 1), date(2034, 1, 1))
    assert SAFETY_CAP == 100
    assert len(result) == SAFETY_CAP
    assert result[-1].start_time == datetime(2024, 1, 1, 9, 0) + timedelta(days=99)


def test_end_after_occurrences_replaces_the_cap():
    entry = make_entry(custom_recurring=CustomRecurring(end_after_occurrences=5))
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 12, 31))
    assert len(result) == 5
    assert result[-1].id == '1_4'


def test_end_date_is_inclusive_of_that_day():
    entry = make_entry(recurring_pattern='weekly', custom_recurring=CustomRecurring(end_date=date(2024, 1, 22)))
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 3, 1))
    assert [o.start_time.day for o in result] == [1, 8, 15, 22]


def test_window_containment_and_duration_preserved():
    entry = make_entry(recurring_pattern='weekly', end_time=datetime(2024, 1, 1, 10, 45))
    window_start, window_end = datetime(2024, 1, 10), datetime(2024, 2, 10)
    result = generate_occurrences(entry, window_start, window_end)
    assert starts(result) == [
        datetime(2024, 1, 15, 9, 0),
        datetime(2024, 1, 22, 9, 0),
        datetime(2024, 1, 29, 9, 0),
        datetime(2024, 2, 5, 9, 0),
    ]
    for occurrence in result:
        assert window_start <= occurrence.start_time <= window_end
        assert occurrence.end_time - occurrence.start_time == timedelta(hours=1, minutes=45)


def test_window_bounds_with_time_of_day_are_respected():
    entry = make_entry()
    result = generate_occurrences(entry, datetime(2024, 1, 3, 9, 30), datetime(2024, 1, 5, 8, 59))
    assert [o.id for o in result] == ['1_3']


def test_date_window_end_covers_the_whole_day():
    entry = make_entry(start_time=datetime(2024, 1, 1, 23, 0), end_time=datetime(2024, 1, 1, 23, 30))
    result = generate_occurrences(entry, date(2024, 1, 2), date(2024, 1, 2))
    assert starts(result) == [datetime(2024, 1, 2, 23, 0)]


def test_inverted_window_yields_nothing_for_recurring_events():
    entry = make_entry()
    assert generate_occurrences(entry, date(2024, 2, 1), date(2024, 1, 1)) == []


def test_monthly_steps_clamp_to_month_end_without_drifting():
    entry = make_entry(
        recurring_pattern='monthly',
        start_time=datetime(2024, 1, 31, 18, 0),
        end_time=datetime(2024, 1, 31, 19, 0),
    )
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 5, 31))
    assert [o.start_time.date() for o in result] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
        date(2024, 5, 31),
    ]


def test_yearly_leap_day_falls_back_to_feb_28():
    entry = make_entry(
        recurring_pattern='yearly',
        start_time=datetime(2024, 2, 29, 8, 0),
        end_time=datetime(2024, 2, 29, 9, 0),
    )
    result = generate_occurrences(entry, date(2024, 1, 1), date(2028, 12, 31))
    assert [o.start_time.date() for o in result] == [
        date(2024, 2, 29),
        date(2025, 2, 28),
        date(2026, 2, 28),
        date(2027, 2, 28),
        date(2028, 2, 29),
    ]


def test_custom_interval_without_weekdays_steps_by_unit():
    entry = make_entry(recurring_pattern='custom', custom_recurring=CustomRecurring(interval=3, unit='days'))
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 1, 8))
    assert [o.start_time.day for o in result] == [1, 4, 7]

    every_other_month = make_entry(recurring_pattern='custom', custom_recurring=CustomRecurring(interval=2, unit='months'))
    result = generate_occurrences(every_other_month, date(2024, 1, 1), date(2024, 7, 1))
    assert [o.start_time.month for o in result] == [1, 3, 5, 7]


def test_malformed_rules_fall_back_to_a_single_occurrence():
    missing_rule = make_entry(recurring_pattern='custom')
    zero_interval = make_entry(recurring_pattern='custom', custom_recurring=CustomRecurring(interval=0, unit='days'))
    unknown_pattern = make_entry(recurring_pattern='hourly')
    bad_count = make_entry(custom_recurring=CustomRecurring(end_after_occurrences=0))
    bad_unit = make_entry(recurring_pattern='custom', custom_recurring=CustomRecurring(interval=1, unit='fortnights'))
    too_many = make_entry(custom_recurring=CustomRecurring(end_after_occurrences=MAX_END_AFTER_OCCURRENCES + 1))
    bad_end_date = make_entry(custom_recurring=CustomRecurring(end_date='soon'))
    for entry in (missing_rule, zero_interval, unknown_pattern, bad_count, bad_unit, too_many, bad_end_date):
        assert generate_occurrences(entry, date(2024, 1, 1), date(2024, 12, 31)) == [entry]


def test_generation_is_deterministic():
    entry = make_entry(recurring_pattern='weekly')
    first = generate_occurrences(entry, date(2024, 1, 1), date(2024, 6, 30))
    second = generate_occurrences(entry, date(2024, 1, 1), date(2024, 6, 30))
    assert first == second
    assert [o.to_dict() for o in first] == [o.to_dict() for o in second]


def test_cancelled_occurrence_is_skipped_but_keeps_later_ordinals():
    entry = make_entry(exceptions={2: OccurrenceException(ordinal=2, cancelled=True)})
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 1, 5))
    assert [o.id for o in result] == ['1_0', '1_1', '1_3', '1_4']


def test_overrides_change_payload_only():
    entry = make_entry(exceptions={
        1: OccurrenceException(ordinal=1, overrides={'title': 'Retro', 'start_time': datetime(2030, 1, 1)}),
    })
    result = generate_occurrences(entry, date(2024, 1, 1), date(2024, 1, 3))
    assert [o.title for o in result] == ['Standup', 'Retro', 'Standup']
    assert result[1].start_time == datetime(2024, 1, 2, 9, 0)
    assert all(o.exceptions == {} for o in result)


def test_next_occurrence_point_query():
    entry = make_entry(exceptions={10: OccurrenceException(ordinal=10, cancelled=True)})
    upcoming = next_occurrence(entry, datetime(2024, 1, 9, 12, 0))
    assert upcoming.id == '1_9'
    # The 11th is cancelled, so the 12th is next.
    upcoming = next_occurrence(entry, datetime(2024, 1, 10, 12, 0))
    assert upcoming.id == '1_11'
    assert upcoming.start_time == datetime(2024, 1, 12, 9, 0)


def test_next_occurrence_none_when_series_exhausted_or_not_recurring():
    limited = make_entry(custom_recurring=CustomRecurring(end_after_occurrences=3))
    assert next_occurrence(limited, datetime(2024, 1, 3, 9, 0)) is None
    assert next_occurrence(make_entry(is_recurring=False), datetime(2023, 1, 1)) is None


def test_occurrence_by_ordinal():
    entry = make_entry()
    occurrence = occurrence_by_ordinal(entry, 31)
    assert occurrence.start_time == datetime(2024, 2, 1, 9, 0)
    assert occurrence.id == '1_31'
    assert occurrence_by_ordinal(entry, SAFETY_CAP) is None
    assert occurrence_by_ordinal(entry, -1) is None


def test_next_occurrence_start_steps():
    jan_31 = datetime(2024, 1, 31, 9, 0)
    assert next_occurrence_start(jan_31, 'daily') == datetime(2024, 2, 1, 9, 0)
    assert next_occurrence_start(jan_31, 'weekly') == datetime(2024, 2, 7, 9, 0)
    assert next_occurrence_start(jan_31, 'monthly') == datetime(2024, 2, 29, 9, 0)
    assert next_occurrence_start(jan_31, 'yearly') == datetime(2025, 1, 31, 9, 0)
    assert next_occurrence_start(jan_31, 'none') == jan_31
    assert next_occurrence_start(jan_31, 'custom', CustomRecurring(interval=2, unit='weeks')) == datetime(2024, 2, 14, 9, 0)
    # Wednesday -> Friday of the same week
    weekday_rule = CustomRecurring(interval=1, unit='weeks', selected_days=(3, 5))
    assert next_occurrence_start(jan_31, 'custom', weekday_rule) == datetime(2024, 2, 2, 9, 0)


def test_series_stops_at_the_end_of_the_calendar():
    entry = make_entry(
        recurring_pattern='yearly',
        start_time=datetime(9998, 1, 1, 9, 0),
        end_time=datetime(9998, 1, 1, 10, 0),
    )
    assert next_occurrence(entry, datetime(9999, 6, 1)) is None
    assert occurrence_by_ordinal(entry, 5) is None
    result = generate_occurrences(entry, date(9998, 1, 1), date(9999, 12, 31))
    assert [o.start_time.year for o in result] == [9998, 9999]


def test_occurrence_that_would_end_past_the_calendar_is_not_generated():
    entry = make_entry(start_time=datetime(9999, 12, 30, 10, 0), end_time=datetime(9999, 12, 31, 11, 0))
    result = generate_occurrences(entry, date(9999, 12, 30), date(9999, 12, 31))
    assert [o.id for o in result] == ['1_0']


def test_point_query_is_bounded_by_the_occurrence_ceiling():
    entry = make_entry(custom_recurring=CustomRecurring(end_after_occurrences=MAX_END_AFTER_OCCURRENCES))
    assert next_occurrence(entry, datetime(9999, 12, 30)) is None
    last = occurrence_by_ordinal(entry, MAX_END_AFTER_OCCURRENCES - 1)
    assert last.start_time == datetime(2024, 1, 1, 9, 0) + timedelta(days=MAX_END_AFTER_OCCURRENCES - 1)
