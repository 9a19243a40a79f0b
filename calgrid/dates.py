"""Date arithmetic helpers shared by the recurrence, layout and grid code.

All helpers keep the tzinfo of their input. Weekday indices follow the
calendar UI convention: 0 = Sunday ... 6 = Saturday.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from .constants import DAYS_PER_WEEK, DEFAULT_WEEK_START

DateLike = Union[date, datetime]

ONE_DAY = timedelta(days=1)
ONE_MICROSECOND = timedelta(microseconds=1)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def as_date(value: DateLike) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def at_day(day: date, tz_source: Optional[datetime] = None, at: time = time.min) -> datetime:
    """
    Build a datetime on a calendar day.

    Args:
        day: Calendar day
        tz_source: Optional datetime whose tzinfo is reused
        at: Time of day

    Returns:
        Datetime on the given day
    """
    tzinfo = tz_source.tzinfo if tz_source is not None else None
    return datetime.combine(day, at).replace(tzinfo=tzinfo)


def day_index(value: DateLike) -> int:
    """Weekday index with Sunday as 0."""
    return (value.weekday() + 1) % DAYS_PER_WEEK


def start_of_week(dt: datetime, week_start: int = DEFAULT_WEEK_START) -> datetime:
    day = start_of_day(dt)
    return day - timedelta(days=(day_index(day) - week_start) % DAYS_PER_WEEK)


def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt).replace(day=1)


def start_of_year(dt: datetime) -> datetime:
    return start_of_day(dt).replace(month=1, day=1)


def start_of(dt: datetime, unit: str, week_start: int = DEFAULT_WEEK_START) -> datetime:
    """
    Truncate a datetime to the start of a unit.

    Args:
        dt: Datetime to truncate
        unit: One of "day", "week", "month", "year"
        week_start: Weekday index the week starts on

    Returns:
        Truncated datetime

    Raises:
        ValueError: If the unit is unknown
    """
    if unit == "day":
        return start_of_day(dt)
    if unit == "week":
        return start_of_week(dt, week_start)
    if unit == "month":
        return start_of_month(dt)
    if unit == "year":
        return start_of_year(dt)
    raise ValueError(f"Unknown time unit: {unit}")


def add_months(dt: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month's length.

    Args:
        dt: Datetime to shift
        months: Number of months (may be negative)

    Returns:
        Shifted datetime
    """
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))


def add_units(dt: datetime, amount: int, unit: str) -> datetime:
    if unit == "day":
        return dt + timedelta(days=amount)
    if unit == "week":
        return dt + timedelta(weeks=amount)
    if unit == "month":
        return add_months(dt, amount)
    if unit == "year":
        return add_months(dt, 12 * amount)
    raise ValueError(f"Unknown time unit: {unit}")


def diff_units(a: DateLike, b: DateLike, unit: str, week_start: int = DEFAULT_WEEK_START) -> int:
    """
    Whole units between the unit-truncated values of a and b (a - b).

    Args:
        a: Later value
        b: Earlier value
        unit: One of "day", "week", "month", "year"
        week_start: Weekday index the week starts on

    Returns:
        Signed number of units
    """
    da, db = as_date(a), as_date(b)
    if unit == "day":
        return (da - db).days
    if unit == "week":
        wa = da - timedelta(days=(day_index(da) - week_start) % DAYS_PER_WEEK)
        wb = db - timedelta(days=(day_index(db) - week_start) % DAYS_PER_WEEK)
        return (wa - wb).days // DAYS_PER_WEEK
    if unit == "month":
        return (da.year - db.year) * 12 + da.month - db.month
    if unit == "year":
        return da.year - db.year
    raise ValueError(f"Unknown time unit: {unit}")


def end_of(dt: datetime, unit: str, week_start: int = DEFAULT_WEEK_START) -> datetime:
    """Last microsecond of the unit containing dt."""
    return add_units(start_of(dt, unit, week_start), 1, unit) - ONE_MICROSECOND


def last_covered_day(start: datetime, end: datetime, all_day: bool = False) -> date:
    """
    Last calendar day touched by a range running from start to end.

    Timed ranges are half-open, so a timed range ending exactly at
    midnight does not cover the next day. All-day ranges always cover
    the calendar day of their end.
    """
    if end <= start:
        return start.date()
    if all_day:
        return end.date()
    return (end - ONE_MICROSECOND).date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def hours_into_day(dt: datetime) -> float:
    """Fractional hours since midnight, e.g. 10:30 -> 10.5."""
    return dt.hour + dt.minute / 60 + dt.second / 3600
