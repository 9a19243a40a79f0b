"""Manages collections of calendar events and their occurrences."""

from dataclasses import replace
from datetime import datetime, time, tzinfo
from typing import Any, Optional
from .constants import DEFAULT_WEEK_START
from .dates import DateLike, as_date, end_of_day
from .models import CalendarEvent, Occurrence
from .recurrence import expand, make_occurrence, occurs_on, touches_window


class EventCollection:
    """
    Manages a collection of calendar events with support for expansion.

    Every mutation bumps ``version`` so that derived data (packed layouts)
    can be cached per version and dropped when the event set changes.

    Attributes:
        events: List of events in insertion order
        version: Event-set version, incremented on every change
        week_start: Weekday index the week starts on
        tzinfo: Timezone that calendar days are taken in
    """

    def __init__(
        self, week_start: int = DEFAULT_WEEK_START, tz: Optional[tzinfo] = None
    ) -> None:
        """
        Initialize an empty event collection.

        Args:
            week_start: Weekday index the week starts on (0 = Sunday)
            tz: Timezone for calendar days (local time if None)
        """
        self.events: list[CalendarEvent] = []
        self.version: int = 0
        self.week_start: int = week_start
        self.tzinfo: tzinfo = tz or datetime.now().astimezone().tzinfo

    def _touch(self) -> None:
        self.version += 1

    def add_event(self, event: CalendarEvent) -> None:
        """
        Add a single event to the collection.

        Args:
            event: Event to add
        """
        self.events.append(event)
        self._touch()

    def add_events(self, events: list[CalendarEvent]) -> None:
        """
        Add multiple events to the collection.

        Args:
            events: List of events
        """
        if not events:
            return
        self.events.extend(events)
        self._touch()

    def get(self, event_id: str) -> Optional[CalendarEvent]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def update_event(self, event_id: str, patch: dict[str, Any]) -> CalendarEvent:
        """
        Apply a partial update to an event.

        Args:
            event_id: Id of the event to update
            patch: Field values to replace

        Returns:
            The updated event

        Raises:
            KeyError: If no event has this id
        """
        for i, event in enumerate(self.events):
            if event.id == event_id:
                updated = replace(event, **patch)
                self.events[i] = updated
                self._touch()
                return updated
        raise KeyError(event_id)

    def remove_event(self, event_id: str) -> bool:
        """
        Remove an event by id.

        Returns:
            True if an event was removed
        """
        kept = [e for e in self.events if e.id != event_id]
        if len(kept) == len(self.events):
            return False
        self.events = kept
        self._touch()
        return True

    def occurrences_between(
        self, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]:
        """
        Get every occurrence touching a window.

        An occurrence touches the window when it starts no later than
        window_end and ends after window_start. Repeating events are
        expanded.

        Args:
            window_start: Start of the window
            window_end: Inclusive end of the window

        Returns:
            Occurrences sorted by start, end and id
        """
        first_day, last_day = window_start.date(), window_end.date()
        occurrences: list[Occurrence] = []
        for event in self.events:
            if event.repeat is not None:
                occurrences.extend(
                    expand(event, window_start, window_end, week_start=self.week_start)
                )
                continue
            if event.start.date() > last_day:
                continue
            if event.last_day < first_day:
                continue
            occurrence = make_occurrence(event, event.start.date(), window_start, window_end)
            if touches_window(occurrence, window_start, window_end):
                occurrences.append(occurrence)

        occurrences.sort(key=lambda o: (o.start, o.end, o.event_id))
        return occurrences

    def occurrences_on(self, day: DateLike, tz_source: Optional[datetime] = None) -> list[Occurrence]:
        """
        Get the occurrences covering one calendar day.

        Args:
            day: Calendar day
            tz_source: Optional datetime whose tzinfo the day window uses
                instead of the collection timezone

        Returns:
            Occurrences covering the day
        """
        tz = tz_source.tzinfo if tz_source is not None else self.tzinfo
        start = datetime.combine(as_date(day), time.min, tzinfo=tz)
        return self.occurrences_between(start, end_of_day(start))

    def events_on(self, day: DateLike) -> list[CalendarEvent]:
        """
        Filter events that cover a calendar day.

        Repeating events are tested with the single-day filter, so no
        occurrences are built.

        Args:
            day: Calendar day

        Returns:
            Events covering the day
        """
        target = as_date(day)
        matched: list[CalendarEvent] = []
        for event in self.events:
            if event.repeat is not None:
                if occurs_on(event, target, self.week_start):
                    matched.append(event)
            elif event.start.date() <= target <= event.last_day:
                matched.append(event)
        return matched

    def count(self) -> int:
        """
        Get the total number of events.

        Returns:
            Number of events in the collection
        """
        return len(self.events)

    def clear(self) -> None:
        """Clear all events from the collection."""
        self.events = []
        self._touch()


def split_occurrences(occurrences: list[Occurrence]) -> tuple[list[Occurrence], list[Occurrence]]:
    """
    Split occurrences into timed ones and all-day/multi-day ones.

    Returns:
        Tuple of (timed, multiday)
    """
    timed = [o for o in occurrences if not o.is_multiday]
    multiday = [o for o in occurrences if o.is_multiday]
    return timed, multiday
