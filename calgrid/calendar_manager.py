"""Coordinates loading, expanding and packing calendar events."""

import math
import sys
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Any, Optional
from .cache import LayoutCache
from .colors import Colors
from .constants import DAYS_PER_WEEK, DEFAULT_LAYOUT_CACHE_SIZE, DEFAULT_WEEK_START
from .dates import DateLike, as_date, days_in_month, end_of_day, start_of_month, start_of_week
from .event_collection import EventCollection, split_occurrences
from .layout import LayoutPacker
from .models import CalendarEvent, PeriodLayout
from .parser import EventParser

VIEW_DAY = "day"
VIEW_WEEK = "week"
VIEW_MONTH = "month"
VIEW_KINDS = (VIEW_DAY, VIEW_WEEK, VIEW_MONTH)


class CalendarManager:
    """
    High-level coordinator for loading events and laying them out.

    Combines parsing, event management, packing and layout caching into a
    single interface. This is the main class that should be used by
    applications.

    Attributes:
        parser: Event record parser
        events: Event collection instance
        packer: Layout packer
        cache: Packed layouts keyed by period and event-set version
    """

    def __init__(
        self,
        target_timezone: Optional[timezone] = None,
        week_start: int = DEFAULT_WEEK_START,
        show_progress: bool = True,
        aliases: Optional[dict[str, str]] = None,
        cache_size: int = DEFAULT_LAYOUT_CACHE_SIZE,
    ) -> None:
        """
        Initialize the calendar manager.

        Args:
            target_timezone: Timezone to show events in (local time if None)
            week_start: Weekday index the week starts on (0 = Sunday)
            show_progress: Whether to show progress indicators
            aliases: Optional dict mapping source path to friendly name
            cache_size: Maximum number of cached period layouts
        """
        self.target_timezone: tzinfo = target_timezone or datetime.now().astimezone().tzinfo
        self.parser: EventParser = EventParser(self.target_timezone)
        self.events: EventCollection = EventCollection(week_start, self.target_timezone)
        self.packer: LayoutPacker = LayoutPacker()
        self.cache: LayoutCache = LayoutCache(cache_size)
        self.show_progress: bool = show_progress
        self.sources: list[str] = []
        self.aliases: dict[str, str] = aliases or {}

    @property
    def week_start(self) -> int:
        return self.events.week_start

    def _get_display_name(self, source: str) -> str:
        if source in self.aliases:
            return self.aliases[source]
        return source if len(source) <= 60 else "..." + source[-57:]

    def load_source(self, source: str) -> int:
        """
        Load events from a JSON event file.

        Unreadable or malformed files are reported on stderr and skipped.

        Args:
            source: Path to the event file

        Returns:
            Number of events added
        """
        source_display = self._get_display_name(source)
        if self.show_progress:
            print(
                f"{Colors.BLUE}Loading {source_display}...{Colors.RESET}",
                end="",
                file=sys.stderr,
                flush=True,
            )

        try:
            with open(source, encoding="utf-8") as f:
                content = f.read()
            parsed_events = self.parser.parse_content(content)
        except (OSError, ValueError) as e:
            if self.show_progress:
                print(f" {Colors.RED}✗{Colors.RESET}", file=sys.stderr)
            print(f"Warning: Failed to load {source_display}: {e}", file=sys.stderr)
            return 0

        self.events.add_events(parsed_events)
        if self.show_progress:
            print(
                f" {Colors.GREEN}✓{Colors.RESET} ({len(parsed_events)} events)",
                file=sys.stderr,
            )
        return len(parsed_events)

    def load_sources(self, sources: list[str]) -> None:
        """
        Load events from multiple event files.

        Args:
            sources: List of file paths
        """
        self.sources = sources

        if self.show_progress and len(sources) > 1:
            print(
                f"{Colors.BOLD}Loading {len(sources)} event files...{Colors.RESET}",
                file=sys.stderr,
            )

        for source in sources:
            self.load_source(source)

        if self.show_progress and len(sources) > 1:
            print(
                f"{Colors.BOLD}Loaded {self.count_events()} total events{Colors.RESET}\n",
                file=sys.stderr,
            )

    def load_records(self, records: list[dict[str, Any]]) -> int:
        """
        Load events from already decoded records.

        Returns:
            Number of events added
        """
        parsed_events = self.parser.parse_events(records)
        self.events.add_events(parsed_events)
        return len(parsed_events)

    def _anchor(self, day: DateLike) -> datetime:
        return datetime.combine(as_date(day), time.min, tzinfo=self.target_timezone)

    def _period(self, kind: str, day: DateLike) -> tuple[datetime, int, int]:
        """Get (first visible day, number of days, days per row) of a period."""
        anchor = self._anchor(day)
        if kind == VIEW_DAY:
            return anchor, 1, 1
        if kind == VIEW_WEEK:
            return start_of_week(anchor, self.week_start), DAYS_PER_WEEK, DAYS_PER_WEEK

        month_start = start_of_month(anchor)
        first = start_of_week(month_start, self.week_start)
        covered = (month_start.date() - first.date()).days + days_in_month(
            month_start.year, month_start.month
        )
        weeks = math.ceil(covered / DAYS_PER_WEEK)
        return first, weeks * DAYS_PER_WEEK, DAYS_PER_WEEK

    def layout(self, kind: str, day: DateLike) -> PeriodLayout:
        """
        Get the packed layout of the period containing a day.

        Layouts are cached until the event set changes.

        Args:
            kind: "day", "week" or "month"
            day: Any day inside the period

        Returns:
            Packed layout of the period

        Raises:
            ValueError: If kind is unknown
        """
        if kind not in VIEW_KINDS:
            raise ValueError(f"Unknown view: {kind!r}")

        start, day_count, row_length = self._period(kind, day)
        key = f"{kind}:{start.isoformat()}"
        version = self.events.version
        cached = self.cache.get(key, version)
        if cached is not None:
            return cached

        days = [start + timedelta(days=i) for i in range(day_count)]
        occurrences = self.events.occurrences_between(start, end_of_day(days[-1]))
        timed, multiday = split_occurrences(occurrences)

        layout = PeriodLayout(
            kind=kind,
            start=start,
            days=days,
            timed=[self.packer.pack_day(timed, d) for d in days],
            rows=[
                self.packer.pack_rows(multiday, days[i], row_length)
                for i in range(0, day_count, row_length)
            ],
        )
        self.cache.set(key, version, layout)
        return layout

    def day_layout(self, day: DateLike) -> PeriodLayout:
        return self.layout(VIEW_DAY, day)

    def week_layout(self, day: DateLike) -> PeriodLayout:
        return self.layout(VIEW_WEEK, day)

    def month_layout(self, day: DateLike) -> PeriodLayout:
        return self.layout(VIEW_MONTH, day)

    def get_all_events(self) -> list[CalendarEvent]:
        """
        Get all loaded events.

        Returns:
            List of all events
        """
        return self.events.events

    def count_events(self) -> int:
        """
        Get the total number of events.

        Returns:
            Number of loaded events
        """
        return self.events.count()
