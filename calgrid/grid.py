"""Pointer-driven drag state machine shared by the day, week and month grids.

One controller is configured per grid surface. It converts continuous
pointer positions into clamped grid cells for move, resize and create
gestures, and hands the final position to the host through a callback
reference that is read at drop time.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional
from .constants import DAYS_PER_WEEK, DEFAULT_DAY_COLUMNS, DEFAULT_SUBDIVISIONS, HOURS_PER_DAY
from .models import (
    DRAG_MODES,
    EDGE_END,
    EDGE_START,
    MODE_CREATE,
    MODE_MOVE,
    MODE_RESIZE,
    DragUpdate,
    DropResult,
    GridCell,
    Rect,
)

AXIS_X = "x"
AXIS_Y = "y"


class CallbackRef:
    """
    Holder for the host's current callback.

    The host replaces ``current`` whenever its handler changes; readers
    call the ref and always reach the latest handler, even mid-drag.
    """

    def __init__(self, callback: Optional[Callable[..., Any]] = None) -> None:
        self.current: Optional[Callable[..., Any]] = callback

    def set(self, callback: Optional[Callable[..., Any]]) -> None:
        self.current = callback

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self.current is None:
            return None
        return self.current(*args, **kwargs)


@dataclass(frozen=True)
class GridConfig:
    """
    Shape of a grid surface.

    Attributes:
        rows: Number of rows
        cols: Number of columns
        subdivisions: Grid units per hour on time grids
        axis: Axis along which items span ("y" for time columns, "x" for rows)
        multiday: Whether cells form one linear sequence of days that wraps
            from the end of a row to the start of the next
    """

    rows: int
    cols: int
    subdivisions: int = DEFAULT_SUBDIVISIONS
    axis: str = AXIS_Y
    multiday: bool = False

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Grid needs at least one row and column, got {self.rows}x{self.cols}")
        if self.subdivisions < 1:
            raise ValueError(f"Subdivisions must be at least 1, got {self.subdivisions}")
        if self.axis not in (AXIS_X, AXIS_Y):
            raise ValueError(f"Unknown drag axis: {self.axis!r}")

    @property
    def cell_count(self) -> int:
        return self.rows * self.cols

    @classmethod
    def time_grid(
        cls, days: int = DEFAULT_DAY_COLUMNS, subdivisions: int = DEFAULT_SUBDIVISIONS
    ) -> "GridConfig":
        """Grid of day columns split into subdivisions of an hour."""
        return cls(HOURS_PER_DAY * subdivisions, days, subdivisions, AXIS_Y, False)

    @classmethod
    def day_strip(cls, days: int = DAYS_PER_WEEK) -> "GridConfig":
        """Single row of day cells, as used by the all-day strip of a week."""
        return cls(1, days, 1, AXIS_X, True)

    @classmethod
    def month_grid(cls, weeks: int = 6) -> "GridConfig":
        """Rows of week days, as used by a month view."""
        return cls(weeks, DAYS_PER_WEEK, 1, AXIS_X, True)


@dataclass(frozen=True)
class GridGeometry:
    """
    Pixel geometry of the container hosting a grid.

    Attributes:
        width: Container width, including the gutter
        height: Scrollable height, including the header
        gutter: Width of the time gutter left of the first column
        header: Height above the first row
    """

    width: float
    height: float
    gutter: float = 0.0
    header: float = 0.0


class DragSession:
    """
    State of one gesture, from pointer-down to pointer-up.

    Attributes:
        mode: One of "move", "resize", "create"
        item: Dragged item, passed through to the drop result
        origin: Cell the gesture started on
        pointer_offset: Pointer position relative to the item's corner
        anchor: Fixed grid unit for resize and create
        lane: Cross-axis coordinate the item stays in during resize/create
    """

    def __init__(
        self,
        mode: str,
        item: Any,
        origin: GridCell,
        pointer_offset: tuple[float, float],
        span: int,
        anchor: int,
        lane: int,
    ) -> None:
        self.mode: str = mode
        self.item: Any = item
        self.origin: GridCell = origin
        self.pointer_offset: tuple[float, float] = pointer_offset
        self.span: int = span
        self.anchor: int = anchor
        self.lane: int = lane
        self.start: int = anchor
        self.cell: GridCell = origin
        self.segments: tuple[Rect, ...] = ()
        self.has_prev: bool = False
        self.has_next: bool = False


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class GridInteractionController:
    """
    Drag state machine for one grid surface: Idle -> Dragging -> Idle.

    Attributes:
        config: Grid shape
        geometry: Container geometry
        on_drop: Callback ref receiving the DropResult on release
        on_change: Callback ref receiving each DragUpdate
        session: Active drag session, or None when idle
    """

    def __init__(
        self,
        config: GridConfig,
        geometry: GridGeometry,
        on_drop: Optional[CallbackRef] = None,
        on_change: Optional[CallbackRef] = None,
    ) -> None:
        self.config: GridConfig = config
        self.geometry: GridGeometry = geometry
        self.on_drop: CallbackRef = on_drop or CallbackRef()
        self.on_change: CallbackRef = on_change or CallbackRef()
        self.session: Optional[DragSession] = None

    @property
    def active(self) -> bool:
        return self.session is not None

    def reconfigure(
        self, config: Optional[GridConfig] = None, geometry: Optional[GridGeometry] = None
    ) -> None:
        """
        Replace the grid shape or the container geometry.

        Geometry may change at any time (the next move uses it); the shape
        may only change while idle.

        Raises:
            RuntimeError: If the shape changes during a drag
        """
        if config is not None and config != self.config:
            if self.session is not None:
                raise RuntimeError("Cannot change grid shape during a drag")
            self.config = config
        if geometry is not None:
            self.geometry = geometry

    def unit_size(self) -> tuple[float, float]:
        """
        Get the pixel size of one grid cell.

        Returns:
            Tuple of (unit_x, unit_y)

        Raises:
            ValueError: If the geometry leaves no room for cells
        """
        g = self.geometry
        unit_x = (g.width - g.gutter) / self.config.cols
        unit_y = (g.height - g.header) / self.config.rows
        if unit_x <= 0 or unit_y <= 0:
            raise ValueError("Grid geometry leaves no room for cells")
        return unit_x, unit_y

    def snap(self, x: float, y: float) -> GridCell:
        """
        Convert a pointer position to the cell under it, clamped to the grid.

        Args:
            x: Pointer x relative to the container
            y: Pointer y relative to the container

        Returns:
            The snapped cell
        """
        unit_x, unit_y = self.unit_size()
        col = math.floor((x - self.geometry.gutter) / unit_x)
        row = math.floor((y - self.geometry.header) / unit_y)
        return GridCell(
            _clamp(row, 0, self.config.rows - 1), _clamp(col, 0, self.config.cols - 1)
        )

    def _extent(self) -> int:
        if self.config.multiday:
            return self.config.cell_count
        return self.config.rows if self.config.axis == AXIS_Y else self.config.cols

    def _index(self, cell: GridCell) -> int:
        if self.config.multiday:
            return cell.row * self.config.cols + cell.col
        return cell.row if self.config.axis == AXIS_Y else cell.col

    def _lane(self, cell: GridCell) -> int:
        if self.config.multiday:
            return 0
        return cell.col if self.config.axis == AXIS_Y else cell.row

    def _cell_at(self, index: int, lane: int) -> GridCell:
        if self.config.multiday:
            row, col = divmod(index, self.config.cols)
            return GridCell(row, col)
        if self.config.axis == AXIS_Y:
            return GridCell(index, lane)
        return GridCell(lane, index)

    def _segments(self, first: int, last: int, lane: int) -> Iterator[Rect]:
        unit_x, unit_y = self.unit_size()
        gx, gy = self.geometry.gutter, self.geometry.header
        if not self.config.multiday:
            count = last - first + 1
            if self.config.axis == AXIS_Y:
                yield Rect(gx + lane * unit_x, gy + first * unit_y, unit_x, count * unit_y)
            else:
                yield Rect(gx + first * unit_x, gy + lane * unit_y, count * unit_x, unit_y)
            return

        # Split the covered days at row ends
        cols = self.config.cols
        index = first
        while index <= last:
            row, col = divmod(index, cols)
            row_last = min(last, row * cols + cols - 1)
            yield Rect(gx + col * unit_x, gy + row * unit_y, (row_last - index + 1) * unit_x, unit_y)
            index = row_last + 1

    def _apply(self, session: DragSession, start: int, span: int, lane: int) -> None:
        extent = self._extent()
        first = max(start, 0)
        last = min(start + span - 1, extent - 1)
        session.start = start
        session.span = span
        session.lane = lane
        session.has_prev = start < 0
        session.has_next = start + span > extent
        session.cell = self._cell_at(first, lane)
        session.segments = tuple(self._segments(first, last, lane))

    def _update(self, session: DragSession) -> DragUpdate:
        return DragUpdate(
            cell=session.cell,
            rect=session.segments[0],
            segments=session.segments,
            has_prev=session.has_prev,
            has_next=session.has_next,
        )

    def start_drag(
        self,
        mode: str,
        cell: GridCell,
        item: Any = None,
        pointer_offset: tuple[float, float] = (0, 0),
        span: int = 1,
        edge: str = EDGE_END,
        start_index: Optional[int] = None,
    ) -> DragUpdate:
        """
        Begin a drag session.

        Args:
            mode: "move", "resize" or "create"
            cell: First visible cell of the item (the pressed cell for create)
            item: Dragged item, passed through to the drop result
            pointer_offset: Pointer position relative to the item's top-left
                corner in pixels. When the item starts before the grid the
                offset is measured from its hidden start
            span: Item length in grid units (ignored for create)
            edge: Edge being dragged in resize mode, "start" or "end"
            start_index: Grid unit the item really starts on, negative when
                it starts before the grid. Defaults to the unit of cell

        Returns:
            The initial snapped state

        Raises:
            RuntimeError: If a session is already active
            ValueError: If mode, span, edge, cell or start_index is invalid
        """
        if self.session is not None:
            raise RuntimeError("A drag session is already active")
        if mode not in DRAG_MODES:
            raise ValueError(f"Unknown drag mode: {mode!r}")
        if edge not in (EDGE_START, EDGE_END):
            raise ValueError(f"Unknown resize edge: {edge!r}")
        if span < 1:
            raise ValueError(f"Span must be at least 1, got {span}")
        if not (0 <= cell.row < self.config.rows and 0 <= cell.col < self.config.cols):
            raise ValueError(f"Cell {cell} is outside the grid")

        origin = self._index(cell)
        if mode == MODE_CREATE:
            span = 1
        elif start_index is not None:
            if not start_index <= origin <= start_index + span - 1:
                raise ValueError(
                    f"Item starting at {start_index} with span {span} does not cover {cell}"
                )
            origin = start_index
        anchor = origin + span - 1 if mode == MODE_RESIZE and edge == EDGE_START else origin

        session = DragSession(mode, item, cell, pointer_offset, span, anchor, self._lane(cell))
        self._apply(session, origin, span, session.lane)
        self.session = session
        return self._update(session)

    def _move_target(self, session: DragSession, x: float, y: float) -> tuple[int, int]:
        offset_x, offset_y = session.pointer_offset
        if self.config.multiday:
            unit_x, _ = self.unit_size()
            grabbed_days = math.floor(offset_x / unit_x)
            start = self._index(self.snap(x, y)) - grabbed_days
            return _clamp(start, -(session.span - 1), self._extent() - 1), 0

        corner = self.snap(x - offset_x, y - offset_y)
        return self._index(corner), self._lane(corner)

    def on_pointer_move(self, x: float, y: float) -> DragUpdate:
        """
        Track the pointer and recompute the snapped position.

        Out-of-range positions are clamped to the grid.

        Args:
            x: Pointer x relative to the container
            y: Pointer y relative to the container

        Returns:
            Snapped cell, pixel rectangle(s) and truncation flags

        Raises:
            RuntimeError: If no session is active
        """
        session = self.session
        if session is None:
            raise RuntimeError("No drag session is active")

        if session.mode == MODE_MOVE:
            start, lane = self._move_target(session, x, y)
            span = session.span
        else:
            dragged = self._index(self.snap(x, y))
            start = min(session.anchor, dragged)
            span = abs(dragged - session.anchor) + 1
            lane = session.lane

        self._apply(session, start, span, lane)
        update = self._update(session)
        self.on_change(update)
        return update

    def on_pointer_up(self) -> Optional[DropResult]:
        """
        Finish the session and report the last clamped position.

        Returns:
            The drop result, or None if no session was active
        """
        session = self.session
        if session is None:
            return None
        self.session = None

        result = DropResult(
            mode=session.mode,
            item=session.item,
            cell=session.cell,
            start=session.start,
            span=session.span,
            lane=session.lane,
            day_grid=self.config.multiday,
            has_prev=session.has_prev,
            has_next=session.has_next,
        )
        self.on_drop(result)
        return result

    def cancel(self) -> bool:
        """
        Discard the active session without reporting a drop.

        Returns:
            True if a session was discarded
        """
        if self.session is None:
            return False
        self.session = None
        return True
