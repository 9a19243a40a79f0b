"""Value types for calendar events, occurrences, packed layouts and grid drags."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Optional
from .constants import DEFAULT_EVENT_DURATION_HOURS, INTERVAL_TYPES
from .dates import last_covered_day

MODE_MOVE = "move"
MODE_RESIZE = "resize"
MODE_CREATE = "create"
DRAG_MODES = (MODE_MOVE, MODE_RESIZE, MODE_CREATE)

EDGE_START = "start"
EDGE_END = "end"


@dataclass(frozen=True)
class RepeatRule:
    """
    Structured definition of how an event recurs.

    Attributes:
        interval: Number of interval_type units between repetitions (>= 1)
        interval_type: One of "day", "week", "month", "year"
        week_repeat_days: Weekday indices (0 = Sunday) for weekly rules
        end_on: Inclusive last day an occurrence may start on
        overrides: Days on which the rule produces no occurrence
    """

    interval: int = 1
    interval_type: str = "week"
    week_repeat_days: frozenset = frozenset()
    end_on: Optional[date] = None
    overrides: frozenset = frozenset()


def validate_rule(rule: RepeatRule, start: Optional[datetime] = None) -> None:
    """
    Check the invariants of a repeat rule.

    Args:
        rule: Rule to check
        start: Optional start of the owning event, used for the end_on and
            override bounds

    Raises:
        ValueError: If any invariant is violated
    """
    if not isinstance(rule.interval, int) or rule.interval < 1:
        raise ValueError(f"Repeat interval must be an integer >= 1, got {rule.interval!r}")
    if rule.interval_type not in INTERVAL_TYPES:
        raise ValueError(f"Unknown repeat interval type: {rule.interval_type!r}")
    if rule.interval_type == "week":
        if not rule.week_repeat_days:
            raise ValueError("Weekly repeat rule requires at least one weekday")
        if any(d not in range(7) for d in rule.week_repeat_days):
            raise ValueError(f"Weekday indices must be 0-6, got {sorted(rule.week_repeat_days)}")
    elif rule.week_repeat_days:
        raise ValueError("week_repeat_days is only valid for weekly repeat rules")

    if start is None:
        return
    first_day = start.date()
    if rule.end_on is not None and rule.end_on < first_day:
        raise ValueError(f"Repeat end_on {rule.end_on} is before event start {first_day}")
    for day in rule.overrides:
        if day < first_day or (rule.end_on is not None and day > rule.end_on):
            raise ValueError(f"Override {day} lies outside the repeat range")


@dataclass(frozen=True)
class CalendarEvent:
    """
    A calendar event as supplied by the event store.

    A missing end means a point-in-time event with the default one-hour
    duration.
    """

    id: str
    title: str
    start: datetime
    end: Optional[datetime] = None
    all_day: bool = False
    color: Optional[str] = None
    channel: Optional[str] = None
    description: str = ""
    repeat: Optional[RepeatRule] = None

    @property
    def effective_end(self) -> datetime:
        if self.end is not None:
            return self.end
        return self.start + timedelta(hours=DEFAULT_EVENT_DURATION_HOURS)

    @property
    def duration(self) -> timedelta:
        return self.effective_end - self.start

    @property
    def last_day(self) -> date:
        """Last calendar day covered; an all-day end covers its own day."""
        return last_covered_day(self.start, self.effective_end, self.all_day)

    @property
    def span_days(self) -> int:
        """Number of calendar days covered after the first one."""
        return (self.last_day - self.start.date()).days

    @property
    def is_multiday(self) -> bool:
        """True for events shown in the all-day strip rather than a time column."""
        return self.all_day or self.duration > timedelta(days=1)


@dataclass(frozen=True)
class Occurrence:
    """One concrete realization of an event within a queried window."""

    event: CalendarEvent
    start: datetime
    end: datetime
    has_prev: bool = False
    has_next: bool = False

    @property
    def event_id(self) -> str:
        return self.event.id

    @property
    def title(self) -> str:
        return self.event.title

    @property
    def is_multiday(self) -> bool:
        return self.event.is_multiday

    @property
    def last_day(self) -> date:
        return last_covered_day(self.start, self.end, self.event.all_day)


@dataclass
class PackedSlot:
    """
    A visual slot assigned to an occurrence.

    offset and span are fractions of the track width. For timed layouts
    top/height are in hours from the start of the day; for multi-day
    layouts left/width are in day cells from the start of the row.
    """

    occurrence: Occurrence
    index: int
    offset: float
    span: float
    start: datetime
    end: datetime
    has_prev: bool = False
    has_next: bool = False
    top: float = 0.0
    height: float = 0.0
    left: int = 0
    width: int = 0


@dataclass
class PackedLayout:
    """Result of packing one track (a day column or a row of day cells)."""

    slots: list[PackedSlot] = field(default_factory=list)
    track_count: int = 0
    day_offsets: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class GridCell:
    row: int
    col: int


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float


@dataclass(frozen=True)
class DragUpdate:
    """Snapped state reported on each pointer move."""

    cell: GridCell
    rect: Rect
    segments: tuple = ()
    has_prev: bool = False
    has_next: bool = False


@dataclass(frozen=True)
class DropResult:
    """
    Final position of a drag session.

    start is the first grid unit covered (a row for time grids, a linear
    day index for day grids) and span the number of units covered. lane is
    the cross-axis coordinate (the day column of a time grid).
    """

    mode: str
    item: Any
    cell: GridCell
    start: int
    span: int
    lane: int = 0
    day_grid: bool = False
    has_prev: bool = False
    has_next: bool = False


@dataclass
class PeriodLayout:
    """
    Packed layouts for a visible period: one day, a week or a month grid.

    timed holds one day-column layout per entry of days; rows holds one
    all-day row layout per visible row of day cells.
    """

    kind: str
    start: datetime
    days: list[datetime] = field(default_factory=list)
    timed: list[PackedLayout] = field(default_factory=list)
    rows: list[PackedLayout] = field(default_factory=list)
