"""Tests for repeating-event expansion and the single-day filter."""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
import pytest
from calgrid.dates import end_of_day, last_covered_day
from calgrid.models import RepeatRule
from calgrid.recurrence import expand, is_occurrence_start, occurs_on

UTC = timezone.utc


def at(y, m, d, h=0, mi=0):
    return datetime(y, m, d, h, mi, tzinfo=UTC)


def covered_days(occurrences):
    days = set()
    for occ in occurrences:
        day = occ.start.date()
        while day <= last_covered_day(occ.start, occ.end):
            days.add(day)
            day += timedelta(days=1)
    return days


class TestExpandDaily:
    def test_n_day_window_gives_n_occurrences(self, daily_standup):
        for n in (1, 7, 31):
            start = at(2025, 1, 10)
            end = end_of_day(start + timedelta(days=n - 1))
            assert len(expand(daily_standup, start, end)) == n

    def test_keeps_time_of_day_and_duration(self, daily_standup):
        occurrences = expand(daily_standup, at(2025, 1, 10), end_of_day(at(2025, 1, 11)))
        assert [o.start for o in occurrences] == [at(2025, 1, 10, 9), at(2025, 1, 11, 9)]
        assert all(o.end - o.start == timedelta(minutes=15) for o in occurrences)

    def test_nothing_before_event_start(self, daily_standup):
        occurrences = expand(daily_standup, at(2024, 12, 25), end_of_day(at(2025, 1, 3)))
        assert occurrences[0].start == at(2025, 1, 1, 9)
        assert len(occurrences) == 3

    def test_interval_alignment(self, make_event):
        event = make_event(
            start=at(2025, 1, 1, 8),
            repeat=RepeatRule(interval=3, interval_type="day"),
        )
        occurrences = expand(event, at(2025, 1, 5), end_of_day(at(2025, 1, 12)))
        assert [o.start.day for o in occurrences] == [7, 10]

    def test_window_compared_to_the_minute(self, daily_standup):
        occurrences = expand(daily_standup, at(2025, 1, 10, 12), at(2025, 1, 12, 8))
        assert [o.start for o in occurrences] == [at(2025, 1, 11, 9)]

    def test_window_edge_inside_occurrence(self, daily_standup):
        occurrences = expand(daily_standup, at(2025, 1, 10, 9, 10), at(2025, 1, 11, 9))
        assert [o.start for o in occurrences] == [at(2025, 1, 10, 9), at(2025, 1, 11, 9)]
        assert occurrences[0].has_prev

    def test_end_on_is_inclusive(self, daily_standup):
        event = replace(daily_standup, repeat=replace(daily_standup.repeat, end_on=date(2025, 1, 12)))
        occurrences = expand(event, at(2025, 1, 10), end_of_day(at(2025, 1, 20)))
        assert [o.start.day for o in occurrences] == [10, 11, 12]


class TestExpandWeekly:
    def test_two_weeks_monday_wednesday(self, weekly_meeting):
        occurrences = expand(weekly_meeting, at(2025, 1, 12), end_of_day(at(2025, 1, 25)))
        assert [o.start for o in occurrences] == [
            at(2025, 1, 13, 10),
            at(2025, 1, 15, 10),
            at(2025, 1, 20, 10),
            at(2025, 1, 22, 10),
        ]

    def test_override_removes_one_occurrence(self, weekly_meeting):
        rule = replace(weekly_meeting.repeat, overrides=frozenset({date(2025, 1, 20)}))
        event = replace(weekly_meeting, repeat=rule)
        occurrences = expand(event, at(2025, 1, 12), end_of_day(at(2025, 1, 25)))
        assert len(occurrences) == 3
        assert date(2025, 1, 20) not in {o.start.date() for o in occurrences}

    def test_every_other_week(self, make_event):
        event = make_event(
            start=at(2025, 1, 6, 10),
            repeat=RepeatRule(interval=2, interval_type="week", week_repeat_days=frozenset({1})),
        )
        occurrences = expand(event, at(2025, 1, 12), end_of_day(at(2025, 2, 8)))
        assert [o.start.date() for o in occurrences] == [date(2025, 1, 20), date(2025, 2, 3)]

    def test_granularity_window(self, weekly_meeting):
        # Without an explicit end the window is the week containing the start
        occurrences = expand(weekly_meeting, at(2025, 1, 21, 15))
        assert [o.start.date() for o in occurrences] == [date(2025, 1, 20), date(2025, 1, 22)]

    def test_day_granularity(self, weekly_meeting):
        occurrences = expand(weekly_meeting, at(2025, 1, 22, 15), granularity="day")
        assert [o.start.date() for o in occurrences] == [date(2025, 1, 22)]

    def test_monday_week_start(self, make_event):
        event = make_event(
            start=at(2025, 1, 5, 10),
            repeat=RepeatRule(interval=2, interval_type="week", week_repeat_days=frozenset({0})),
        )
        # With Monday-based weeks, Sunday 5 January ends the first week
        occurrences = expand(event, at(2025, 1, 1), end_of_day(at(2025, 1, 31)), week_start=1)
        assert [o.start.day for o in occurrences] == [5, 19]


class TestExpandMonthlyYearly:
    def test_monthly_skips_short_months(self, make_event):
        event = make_event(start=at(2025, 1, 31, 12), repeat=RepeatRule(interval_type="month"))
        occurrences = expand(event, at(2025, 1, 1), end_of_day(at(2025, 4, 30)))
        assert [o.start.date() for o in occurrences] == [date(2025, 1, 31), date(2025, 3, 31)]

    def test_yearly_leap_day(self, make_event):
        event = make_event(start=at(2024, 2, 29, 12), repeat=RepeatRule(interval_type="year"))
        occurrences = expand(event, at(2024, 1, 1), end_of_day(at(2028, 12, 31)))
        assert [o.start.date() for o in occurrences] == [date(2024, 2, 29), date(2028, 2, 29)]

    def test_every_second_month(self, make_event):
        event = make_event(
            start=at(2025, 1, 15, 12), repeat=RepeatRule(interval=2, interval_type="month")
        )
        occurrences = expand(event, at(2025, 2, 1), end_of_day(at(2025, 7, 31)))
        assert [o.start.month for o in occurrences] == [3, 5, 7]


class TestExpandMultiday:
    def test_all_day_occurrence_anchored_to_days(self, make_event):
        event = make_event(
            start=at(2025, 1, 10, 14),
            end=at(2025, 1, 12),
            all_day=True,
            repeat=RepeatRule(interval_type="week", week_repeat_days=frozenset({5})),
        )
        occurrences = expand(event, at(2025, 1, 17), end_of_day(at(2025, 1, 17)))
        assert occurrences[0].start == at(2025, 1, 17)
        # The all-day end day is covered too
        assert occurrences[0].end == end_of_day(at(2025, 1, 19))

    def test_all_day_end_at_midnight_covers_end_day(self, make_event):
        event = make_event(start=at(2025, 1, 10), end=at(2025, 1, 13), all_day=True)
        assert event.span_days == 3
        assert event.last_day == date(2025, 1, 13)
        assert occurs_on(
            replace(event, repeat=RepeatRule(interval_type="week", week_repeat_days=frozenset({5}))),
            date(2025, 1, 20),
        )

    def test_occurrence_started_before_window(self, make_event):
        event = make_event(
            start=at(2025, 1, 10),
            end=at(2025, 1, 11),
            all_day=True,
            repeat=RepeatRule(interval_type="week", week_repeat_days=frozenset({5})),
        )
        occurrences = expand(event, at(2025, 1, 18), end_of_day(at(2025, 1, 18)))
        assert len(occurrences) == 1
        assert occurrences[0].start == at(2025, 1, 17)
        assert occurrences[0].has_prev
        assert not occurrences[0].has_next

    def test_cross_midnight_timed_event(self, make_event):
        event = make_event(
            start=at(2025, 1, 13, 23),
            end=at(2025, 1, 14, 1),
            repeat=RepeatRule(interval_type="week", week_repeat_days=frozenset({1})),
        )
        occurrences = expand(event, at(2025, 1, 21), end_of_day(at(2025, 1, 21)))
        assert [o.start for o in occurrences] == [at(2025, 1, 20, 23)]
        assert occurrences[0].end == at(2025, 1, 21, 1)


class TestExpandErrors:
    def test_no_repeat_gives_nothing(self, make_event):
        assert expand(make_event(), at(2025, 1, 1), end_of_day(at(2025, 1, 31))) == []

    def test_invalid_interval(self, make_event):
        event = make_event(repeat=RepeatRule(interval=0, interval_type="day"))
        with pytest.raises(ValueError):
            expand(event, at(2025, 1, 1), end_of_day(at(2025, 1, 31)))

    def test_weekly_without_days(self, make_event):
        event = make_event(repeat=RepeatRule(interval_type="week"))
        with pytest.raises(ValueError):
            occurs_on(event, date(2025, 1, 13))


class TestOccursOn:
    def test_matching_weekdays(self, weekly_meeting):
        assert occurs_on(weekly_meeting, date(2025, 1, 13))
        assert occurs_on(weekly_meeting, date(2025, 1, 15))
        assert not occurs_on(weekly_meeting, date(2025, 1, 14))
        assert not occurs_on(weekly_meeting, date(2025, 1, 6))

    def test_accepts_datetimes(self, weekly_meeting):
        assert occurs_on(weekly_meeting, at(2025, 1, 20, 18))

    def test_cross_midnight_trailing_day(self, make_event):
        event = make_event(
            start=at(2025, 1, 13, 23),
            end=at(2025, 1, 14, 1),
            repeat=RepeatRule(interval_type="week", week_repeat_days=frozenset({1})),
        )
        assert occurs_on(event, date(2025, 1, 21))
        assert not occurs_on(event, date(2025, 1, 22))

    def test_override_applies_to_matched_start_day(self, make_event):
        event = make_event(
            start=at(2025, 1, 13, 23),
            end=at(2025, 1, 14, 1),
            repeat=RepeatRule(
                interval_type="week",
                week_repeat_days=frozenset({1}),
                overrides=frozenset({date(2025, 1, 20)}),
            ),
        )
        assert not occurs_on(event, date(2025, 1, 20))
        assert not occurs_on(event, date(2025, 1, 21))
        assert occurs_on(event, date(2025, 1, 28))

    def test_is_occurrence_start(self, weekly_meeting):
        assert is_occurrence_start(weekly_meeting, date(2025, 1, 15))
        assert not is_occurrence_start(weekly_meeting, date(2025, 1, 16))


class TestExpandFilterEquivalence:
    """occurs_on must agree with the days covered by expand."""

    def _check(self, event, first, days=70):
        expanded = covered_days(expand(event, at(*first), end_of_day(at(*first) + timedelta(days=days))))
        for i in range(days):
            day = date(*first) + timedelta(days=i)
            window = expand(event, at(day.year, day.month, day.day), end_of_day(at(day.year, day.month, day.day)))
            assert occurs_on(event, day) == (day in covered_days(window)), day
            assert occurs_on(event, day) == (day in expanded), day

    def test_weekly_with_override(self, weekly_meeting):
        rule = replace(weekly_meeting.repeat, overrides=frozenset({date(2025, 1, 20)}))
        self._check(replace(weekly_meeting, repeat=rule), (2025, 1, 1))

    def test_multiday_every_other_week(self, make_event):
        event = make_event(
            start=at(2025, 1, 10),
            end=at(2025, 1, 13),
            all_day=True,
            repeat=RepeatRule(
                interval=2,
                interval_type="week",
                week_repeat_days=frozenset({5}),
                end_on=date(2025, 2, 28),
                overrides=frozenset({date(2025, 1, 24)}),
            ),
        )
        self._check(event, (2025, 1, 1))

    def test_cross_midnight_daily(self, make_event):
        event = make_event(
            start=at(2025, 1, 3, 22),
            end=at(2025, 1, 4, 2),
            repeat=RepeatRule(
                interval=2, interval_type="day", overrides=frozenset({date(2025, 1, 9)})
            ),
        )
        self._check(event, (2025, 1, 1), days=30)

    def test_monthly(self, make_event):
        event = make_event(start=at(2025, 1, 30, 9), repeat=RepeatRule(interval_type="month"))
        self._check(event, (2025, 1, 1), days=120)
