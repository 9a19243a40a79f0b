"""Turns drop results into time ranges and edit/delete requests for the host."""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union
from .constants import DEFAULT_EVENT_DURATION_HOURS, DEFAULT_SUBDIVISIONS
from .dates import at_day, day_index, end_of_day, start_of_day
from .grid import CallbackRef, GridInteractionController
from .models import MODE_CREATE, MODE_MOVE, CalendarEvent, DropResult, Occurrence, validate_rule
from .recurrence import make_occurrence

SCOPE_THIS = "this"
SCOPE_ALL = "all"
EDIT_SCOPES = (SCOPE_THIS, SCOPE_ALL)

DragItem = Union[CalendarEvent, Occurrence]


@dataclass(frozen=True)
class EventDraft:
    """Time range proposed for a new event."""

    start: datetime
    end: datetime
    all_day: bool = False
    title: str = ""


def _item_range(item: DragItem) -> tuple[datetime, datetime]:
    if isinstance(item, Occurrence):
        return item.start, item.end
    return item.start, item.effective_end


def _as_occurrence(item: DragItem) -> Occurrence:
    if isinstance(item, Occurrence):
        return item
    return make_occurrence(item, item.start.date())


def drop_to_time_range(
    result: DropResult,
    base: datetime,
    subdivisions: int = DEFAULT_SUBDIVISIONS,
    item: Optional[DragItem] = None,
) -> tuple[datetime, datetime]:
    """
    Convert a drop result into a concrete time range.

    On time grids the lane is the day column and grid units are
    subdivisions of an hour. On day grids the start is a day offset;
    moved items keep their time of day.

    Args:
        result: Drop result from the grid controller
        base: First visible day of the grid
        subdivisions: Grid units per hour on time grids
        item: Dragged item, whose duration a move preserves

    Returns:
        Tuple of (start, end)
    """
    first_day = start_of_day(base)
    keep_duration = result.mode == MODE_MOVE and item is not None

    if result.day_grid:
        day = first_day + timedelta(days=result.start)
        if keep_duration:
            item_start, item_end = _item_range(item)
            start = at_day(day.date(), item_start, item_start.time())
            return start, start + (item_end - item_start)
        return day, end_of_day(day + timedelta(days=result.span - 1))

    start = first_day + timedelta(days=result.lane, hours=result.start / subdivisions)
    if keep_duration:
        item_start, item_end = _item_range(item)
        return start, start + (item_end - item_start)
    return start, start + timedelta(hours=result.span / subdivisions)


def create_draft(
    result: DropResult, base: datetime, subdivisions: int = DEFAULT_SUBDIVISIONS
) -> EventDraft:
    """
    Build the draft for a drag-to-create gesture.

    A single-unit press on a time grid proposes the default one-hour event.

    Args:
        result: Drop result of a create gesture
        base: First visible day of the grid
        subdivisions: Grid units per hour on time grids

    Returns:
        Draft time range
    """
    start, end = drop_to_time_range(result, base, subdivisions)
    if not result.day_grid and result.span == 1:
        end = start + timedelta(hours=DEFAULT_EVENT_DURATION_HOURS)
    return EventDraft(start=start, end=end, all_day=result.day_grid)


def resolve_edit(
    event: CalendarEvent,
    occurrence: Occurrence,
    new_start: datetime,
    new_end: datetime,
    scope: str = SCOPE_THIS,
) -> tuple[str, dict[str, Any], Optional[date]]:
    """
    Work out the change to request for a moved or resized occurrence.

    For one-off events the patch is the new range. For repeating events,
    scope "this" asks for a standalone copy and an override of the
    occurrence's day; scope "all" shifts the whole series by the same
    number of days (weekly rules swap the moved weekday instead) and
    applies the new time of day and duration.

    Args:
        event: Source event
        occurrence: Occurrence that was changed
        new_start: New start of the occurrence
        new_end: New end of the occurrence
        scope: "this" or "all"

    Returns:
        Tuple of (event id, patch, override_of)

    Raises:
        ValueError: If the scope is unknown or the shifted rule is invalid
    """
    if scope not in EDIT_SCOPES:
        raise ValueError(f"Unknown edit scope: {scope!r}")

    rule = event.repeat
    if rule is None:
        return event.id, {"start": new_start, "end": new_end}, None
    if scope == SCOPE_THIS:
        return event.id, {"start": new_start, "end": new_end}, occurrence.start.date()

    shift = (new_start.date() - occurrence.start.date()).days
    if rule.interval_type == "week":
        days = set(rule.week_repeat_days)
        moved_from, moved_to = day_index(occurrence.start), day_index(new_start)
        if moved_from != moved_to:
            days.discard(moved_from)
            days.add(moved_to)
        new_rule = replace(rule, week_repeat_days=frozenset(days))
        # The series keeps its first day; only the weekday set changes
        first_day = event.start.date()
    else:
        new_rule = rule
        first_day = event.start.date() + timedelta(days=shift)

    series_start = at_day(first_day, event.start, new_start.time())
    overrides = frozenset(d for d in new_rule.overrides if d >= series_start.date())
    new_rule = replace(new_rule, overrides=overrides)
    validate_rule(new_rule, series_start)

    patch = {
        "start": series_start,
        "end": series_start + (new_end - new_start),
        "repeat": new_rule,
    }
    return event.id, patch, None


def resolve_delete(
    event: CalendarEvent, occurrence: Occurrence, scope: str = SCOPE_THIS
) -> tuple[str, Optional[date]]:
    """
    Work out what to delete for an occurrence.

    Returns:
        Tuple of (event id, override_of); override_of is the occurrence's
        day when only that occurrence of a repeating event goes away

    Raises:
        ValueError: If the scope is unknown
    """
    if scope not in EDIT_SCOPES:
        raise ValueError(f"Unknown edit scope: {scope!r}")
    if event.repeat is None or scope == SCOPE_ALL:
        return event.id, None
    return event.id, occurrence.start.date()


class CalendarActions:
    """
    Routes finished gestures to the host's callbacks.

    The callbacks live in CallbackRefs so the host can swap handlers at
    any time; each call reads the current handler.

    Attributes:
        base: First visible day of the grid
        subdivisions: Grid units per hour on time grids
        drag_scope: Scope applied when a repeating occurrence is dragged
        on_new_event: Ref called with an EventDraft
        on_edit_event: Ref called with (event_id, patch, override_of)
        on_delete_event: Ref called with (event_id, override_of)
    """

    def __init__(
        self,
        base: datetime,
        subdivisions: int = DEFAULT_SUBDIVISIONS,
        drag_scope: str = SCOPE_THIS,
        on_new_event: Optional[CallbackRef] = None,
        on_edit_event: Optional[CallbackRef] = None,
        on_delete_event: Optional[CallbackRef] = None,
    ) -> None:
        if drag_scope not in EDIT_SCOPES:
            raise ValueError(f"Unknown edit scope: {drag_scope!r}")
        self.base: datetime = base
        self.subdivisions: int = subdivisions
        self.drag_scope: str = drag_scope
        self.on_new_event: CallbackRef = on_new_event or CallbackRef()
        self.on_edit_event: CallbackRef = on_edit_event or CallbackRef()
        self.on_delete_event: CallbackRef = on_delete_event or CallbackRef()

    def attach(self, controller: GridInteractionController) -> None:
        """Make this object the drop handler of a grid controller."""
        controller.on_drop.set(self.handle_drop)

    def handle_drop(self, result: DropResult) -> Any:
        """
        Report a finished gesture.

        Create gestures produce a draft; move and resize gestures produce
        an edit of the dragged item.

        Returns:
            The draft or the (event_id, patch, override_of) edit
        """
        if result.mode == MODE_CREATE:
            draft = create_draft(result, self.base, self.subdivisions)
            self.on_new_event(draft)
            return draft

        if result.item is None:
            raise ValueError(f"A {result.mode} drop needs the dragged item")
        start, end = drop_to_time_range(result, self.base, self.subdivisions, result.item)
        return self.edit(result.item, start, end, self.drag_scope)

    def edit(
        self, item: DragItem, new_start: datetime, new_end: datetime, scope: str = SCOPE_THIS
    ) -> tuple[str, dict[str, Any], Optional[date]]:
        occurrence = _as_occurrence(item)
        request = resolve_edit(occurrence.event, occurrence, new_start, new_end, scope)
        self.on_edit_event(*request)
        return request

    def delete(self, item: DragItem, scope: str = SCOPE_THIS) -> tuple[str, Optional[date]]:
        occurrence = _as_occurrence(item)
        request = resolve_delete(occurrence.event, occurrence, scope)
        self.on_delete_event(*request)
        return request
