"""Collision-aware packing of overlapping occurrences into visual slots."""

from datetime import date, datetime, timedelta
from typing import Optional
from .constants import DAYS_PER_WEEK
from .dates import ONE_DAY, at_day, end_of_day, hours_into_day, start_of_day
from .models import Occurrence, PackedLayout, PackedSlot


class _Interval:
    """Mutable working record for one occurrence while it is being packed."""

    __slots__ = ("occurrence", "start", "end", "title", "index", "colspan", "columns")

    def __init__(self, occurrence: Occurrence, start: datetime, end: datetime) -> None:
        self.occurrence = occurrence
        self.start = start
        self.end = end
        self.title = occurrence.title
        self.index = 0
        self.colspan = 1
        self.columns = 1


def collides(a, b) -> bool:
    """Check if two [start, end) ranges overlap."""
    return a.start < b.end and a.end > b.start


def _sort_key(item: _Interval) -> tuple:
    # Longer titles first on ties so they get the leftmost column
    return (item.start, item.end, -len(item.title))


class LayoutPacker:
    """
    Greedy column/row packer for calendar occurrences.

    Occurrences are sorted by start, end and title length, split into
    connected groups (a group closes once no interval is still open) and
    placed in the first column whose last interval does not collide.
    The same algorithm lays out timed events as vertical lanes inside a day
    and all-day events as stacked rows across day cells.

    Attributes:
        expand_width: Whether timed slots widen over free columns to the right
    """

    def __init__(self, expand_width: bool = True) -> None:
        self.expand_width: bool = expand_width

    def _finalize_group(self, columns: list[list[_Interval]], expand: bool) -> None:
        count = len(columns)
        for i, column in enumerate(columns):
            for item in column:
                colspan = 1
                if expand:
                    for other in columns[i + 1 :]:
                        if any(collides(o, item) for o in other):
                            break
                        colspan += 1
                item.columns = count
                item.colspan = colspan

    def _place(self, items: list[_Interval], expand: bool) -> int:
        """
        Assign column indices in place.

        Returns:
            Largest number of columns used by any group
        """
        items.sort(key=_sort_key)
        columns: list[list[_Interval]] = []
        last_ending: Optional[datetime] = None
        max_columns = 0

        for item in items:
            if last_ending is not None and item.start >= last_ending:
                self._finalize_group(columns, expand)
                columns = []
                last_ending = None

            for i, column in enumerate(columns):
                if not collides(column[-1], item):
                    column.append(item)
                    item.index = i
                    break
            else:
                item.index = len(columns)
                columns.append([item])

            max_columns = max(max_columns, len(columns))
            if last_ending is None or item.end > last_ending:
                last_ending = item.end

        if columns:
            self._finalize_group(columns, expand)
        return max_columns

    def pack(self, occurrences: list[Occurrence]) -> list[PackedSlot]:
        """
        Pack occurrences by their own start and end times.

        Args:
            occurrences: Occurrences to pack

        Returns:
            One slot per occurrence, in packing order
        """
        items = [_Interval(o, o.start, o.end) for o in occurrences]
        self._place(items, self.expand_width)
        return [
            PackedSlot(
                occurrence=item.occurrence,
                index=item.index,
                offset=item.index / item.columns,
                span=item.colspan / item.columns,
                start=item.start,
                end=item.end,
                has_prev=item.occurrence.has_prev,
                has_next=item.occurrence.has_next,
            )
            for item in items
        ]

    def pack_day(self, occurrences: list[Occurrence], day: datetime) -> PackedLayout:
        """
        Lay out timed occurrences in one day column.

        Occurrences are clipped to the day; has_prev/has_next mark clipped
        ends. top and height are in hours.

        Args:
            occurrences: Candidate occurrences (multi-day ones are ignored)
            day: Any time on the day to lay out

        Returns:
            Packed layout with slots ordered left to right
        """
        day_start = start_of_day(day)
        day_end = day_start + ONE_DAY

        items: list[_Interval] = []
        for occ in occurrences:
            if occ.is_multiday or not (occ.start < day_end and occ.end > day_start):
                continue
            items.append(_Interval(occ, max(occ.start, day_start), min(occ.end, day_end)))

        track_count = self._place(items, self.expand_width)

        slots: list[PackedSlot] = []
        for item in items:
            has_prev = item.occurrence.start < day_start
            has_next = item.occurrence.end > day_end
            top = 0.0 if has_prev else hours_into_day(item.start)
            slots.append(
                PackedSlot(
                    occurrence=item.occurrence,
                    index=item.index,
                    offset=item.index / item.columns,
                    span=item.colspan / item.columns,
                    start=item.start,
                    end=item.end,
                    has_prev=has_prev,
                    has_next=has_next,
                    top=top,
                    height=(item.end - item.start).total_seconds() / 3600,
                )
            )

        slots.sort(key=lambda s: s.offset)
        return PackedLayout(slots=slots, track_count=track_count)

    def pack_rows(
        self, occurrences: list[Occurrence], row_start: datetime, days: int = DAYS_PER_WEEK
    ) -> PackedLayout:
        """
        Stack all-day and multi-day occurrences in rows across day cells.

        Occurrences are normalised to whole days, then left/width are
        clipped to the visible days of the row.

        Args:
            occurrences: Candidate occurrences (timed ones are ignored)
            row_start: First visible day of the row
            days: Number of day cells in the row

        Returns:
            Packed layout with per-day row offsets
        """
        first = start_of_day(row_start)
        row_end = first + timedelta(days=days)

        items: list[_Interval] = []
        for occ in occurrences:
            if not occ.is_multiday or not (occ.start < row_end and occ.last_day >= first.date()):
                continue
            start = start_of_day(occ.start)
            end = end_of_day(at_day(occ.last_day, occ.start))
            items.append(_Interval(occ, start, end))

        track_count = self._place(items, False)

        day_offsets = [0] * days
        slots: list[PackedSlot] = []
        for item in items:
            has_prev = item.start < first
            has_next = item.end >= row_end
            left = 0 if has_prev else _days_between(first.date(), item.start.date())
            right = days if has_next else _days_between(first.date(), item.end.date()) + 1
            for i in range(left, right):
                day_offsets[i] = max(day_offsets[i], item.index + 1)
            slots.append(
                PackedSlot(
                    occurrence=item.occurrence,
                    index=item.index,
                    offset=left / days,
                    span=(right - left) / days,
                    start=item.start,
                    end=item.end,
                    has_prev=has_prev,
                    has_next=has_next,
                    top=float(item.index),
                    height=1.0,
                    left=left,
                    width=right - left,
                )
            )

        return PackedLayout(slots=slots, track_count=track_count, day_offsets=day_offsets)

    def pack_weeks(
        self, occurrences: list[Occurrence], first_row_start: datetime, weeks: int
    ) -> list[PackedLayout]:
        """Pack consecutive week rows, as shown by a month grid."""
        first = start_of_day(first_row_start)
        return [
            self.pack_rows(occurrences, first + timedelta(weeks=i), DAYS_PER_WEEK)
            for i in range(weeks)
        ]


def _days_between(a: date, b: date) -> int:
    return (b - a).days
