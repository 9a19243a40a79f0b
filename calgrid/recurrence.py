"""Expansion of repeating events into concrete occurrences.

``expand`` walks a repeat rule across a time window; ``occurs_on`` answers
the same question for a single day without building the occurrences.
Both share one acceptance predicate so that a day is reported by
``occurs_on`` exactly when some occurrence returned by ``expand`` covers it.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from .constants import DAYS_PER_WEEK, DEFAULT_WEEK_START
from .dates import (
    DateLike,
    add_units,
    as_date,
    at_day,
    day_index,
    days_in_month,
    diff_units,
    end_of,
    end_of_day,
    start_of,
    start_of_day,
)
from .models import CalendarEvent, Occurrence, RepeatRule, validate_rule


def _matches_unit(rule: RepeatRule, day: date, anchor: date, week_start: int) -> bool:
    """Modular test: does the rule's stepping land on this day?"""
    if diff_units(day, anchor, rule.interval_type, week_start) % rule.interval != 0:
        return False
    if rule.interval_type == "week":
        return day_index(day) in rule.week_repeat_days
    if rule.interval_type == "month":
        return day.day == anchor.day
    if rule.interval_type == "year":
        return day.month == anchor.month and day.day == anchor.day
    return True


def _accepted(event: CalendarEvent, rule: RepeatRule, day: date) -> bool:
    if day < event.start.date():
        return False
    if rule.end_on is not None and day > rule.end_on:
        return False
    return day not in rule.overrides


def is_occurrence_start(
    event: CalendarEvent, day: DateLike, week_start: int = DEFAULT_WEEK_START
) -> bool:
    """
    Check whether an occurrence of a repeating event starts on a day.

    Args:
        event: Repeating event
        day: Day to test
        week_start: Weekday index the week starts on

    Returns:
        True if the rule produces an occurrence starting on that day
    """
    rule = event.repeat
    if rule is None:
        return False
    target = as_date(day)
    return _accepted(event, rule, target) and _matches_unit(
        rule, target, event.start.date(), week_start
    )


def _step_candidates(
    current: datetime, event: CalendarEvent, rule: RepeatRule, week_start: int
) -> list[date]:
    """Candidate start days produced by one step of the rule."""
    base = current.date()
    if rule.interval_type == "day":
        return [base]
    if rule.interval_type == "week":
        offsets = sorted((d - week_start) % DAYS_PER_WEEK for d in rule.week_repeat_days)
        return [base + timedelta(days=o) for o in offsets]

    anchor = event.start
    if rule.interval_type == "month":
        if anchor.day > days_in_month(base.year, base.month):
            return []
        return [base.replace(day=anchor.day)]

    # Yearly rules skip years without the anchor day (29 February)
    if anchor.day > days_in_month(base.year, anchor.month):
        return []
    return [base.replace(month=anchor.month, day=anchor.day)]


def make_occurrence(
    event: CalendarEvent,
    day: date,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> Occurrence:
    """
    Build the occurrence of an event starting on a given day.

    Timed events keep their time of day and exact duration. All-day and
    multi-day events are anchored to day boundaries.

    Args:
        event: Source event
        day: Start day of the occurrence
        window_start: Optional window start used for the has_prev flag
        window_end: Optional window end used for the has_next flag

    Returns:
        The occurrence
    """
    if event.is_multiday:
        start = at_day(day, event.start)
        end = end_of_day(at_day(day + timedelta(days=event.span_days), event.start))
    else:
        start = at_day(day, event.start, event.start.time())
        end = start + event.duration

    return Occurrence(
        event=event,
        start=start,
        end=end,
        has_prev=window_start is not None and start < window_start,
        has_next=window_end is not None and end > window_end,
    )


def touches_window(occurrence: Occurrence, window_start: datetime, window_end: datetime) -> bool:
    """True if the occurrence overlaps [window_start, window_end], end inclusive."""
    return occurrence.start <= window_end and occurrence.end > window_start


def expand(
    event: CalendarEvent,
    window_start: datetime,
    window_end: Optional[datetime] = None,
    granularity: str = "week",
    week_start: int = DEFAULT_WEEK_START,
) -> list[Occurrence]:
    """
    Expand a repeating event into the occurrences that touch a window.

    An occurrence touches the window when it starts no later than
    window_end and ends after window_start, compared to the microsecond.
    Occurrences that start before the window but still overlap it are
    included and flagged with has_prev.

    Args:
        event: Event with a repeat rule
        window_start: Start of the window
        window_end: Inclusive end of the window. When omitted the window is
            the granularity period containing window_start
        granularity: "day", "week" or "month", used when window_end is omitted
        week_start: Weekday index the week starts on

    Returns:
        Occurrences in chronological order

    Raises:
        ValueError: If the repeat rule is invalid
    """
    rule = event.repeat
    if rule is None:
        return []
    validate_rule(rule)

    if window_end is None:
        window_start = start_of(window_start, granularity, week_start)
        window_end = end_of(window_start, granularity, week_start)

    last_day = window_end.date()
    if rule.end_on is not None and rule.end_on < last_day:
        last_day = rule.end_on

    # Look back far enough to catch occurrences still running into the window
    lower = start_of_day(window_start) - timedelta(days=event.span_days)
    lower_day = max(lower.date(), event.start.date())
    if lower_day > last_day:
        return []

    unit = rule.interval_type
    base = start_of(at_day(lower_day, window_start), unit, week_start)
    offset = diff_units(base, event.start, unit, week_start) % rule.interval
    current = add_units(base, 0 if offset == 0 else rule.interval - offset, unit)

    occurrences: list[Occurrence] = []
    while current.date() <= last_day:
        for day in _step_candidates(current, event, rule, week_start):
            if day < lower_day or day > last_day or day in rule.overrides:
                continue
            occurrence = make_occurrence(event, day, window_start, window_end)
            if touches_window(occurrence, window_start, window_end):
                occurrences.append(occurrence)
        current = add_units(current, rule.interval, unit)

    return occurrences


def occurs_on(
    event: CalendarEvent, day: DateLike, week_start: int = DEFAULT_WEEK_START
) -> bool:
    """
    Check whether a repeating event covers a calendar day.

    The day is covered when an occurrence starts on it or on one of the
    preceding span_days days, so the trailing day of a cross-midnight event
    matches through the occurrence that started the day before.

    Args:
        event: Event with a repeat rule
        day: Day to test
        week_start: Weekday index the week starts on

    Returns:
        True if some occurrence covers the day

    Raises:
        ValueError: If the repeat rule is invalid
    """
    if event.repeat is None:
        return False
    validate_rule(event.repeat)

    target = as_date(day)
    for back in range(event.span_days + 1):
        if is_occurrence_start(event, target - timedelta(days=back), week_start):
            return True
    return False
