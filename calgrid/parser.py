"""Pure event-record parsing logic without I/O or state management."""

import json
import sys
from datetime import date, datetime, timezone
from typing import Any, Optional
from .models import CalendarEvent, RepeatRule, validate_rule

EventRecord = dict[str, Any]


class EventParser:
    """
    Parser for event records as delivered by the event store.

    Records are JSON objects with ISO 8601 timestamps. Naive timestamps
    are interpreted in the target timezone.

    Attributes:
        target_timezone: Optional timezone for converting event times
    """

    def __init__(self, target_timezone: Optional[timezone] = None) -> None:
        """
        Initialize the parser.

        Args:
            target_timezone: Optional timezone to convert event times to
        """
        self.target_timezone: Optional[timezone] = target_timezone

    def parse_datetime(self, value: Any) -> Optional[datetime]:
        """
        Parse a timestamp into a datetime.

        Supports:
        - datetime and date objects
        - ISO 8601 strings, with or without offset ("Z" is UTC)
        - iCal style YYYYMMDDTHHMMSSZ, YYYYMMDDTHHMMSS and YYYYMMDD

        Args:
            value: Value to parse

        Returns:
            Parsed datetime, or None if the value cannot be parsed
        """
        if value is None or value == "":
            return None

        dt: Optional[datetime] = None
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, date):
            dt = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z") and "T" in text and "-" in text:
                text = text[:-1] + "+00:00"
            try:
                dt = datetime.fromisoformat(text)
            except ValueError:
                formats: list[tuple[str, bool]] = [
                    ("%Y%m%dT%H%M%SZ", True),
                    ("%Y%m%dT%H%M%S", False),
                    ("%Y%m%d", False),
                ]
                for fmt, utc_flag in formats:
                    try:
                        dt = datetime.strptime(text, fmt)
                        if utc_flag:
                            dt = dt.replace(tzinfo=timezone.utc)
                        break
                    except ValueError:
                        continue
        if dt is None:
            return None

        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.target_timezone)
        if self.target_timezone:
            return dt.astimezone(self.target_timezone)
        return dt

    def parse_date(self, value: Any) -> Optional[date]:
        """
        Parse a calendar day.

        Timestamps are converted to the target timezone before taking the day.

        Args:
            value: Date, datetime or string

        Returns:
            Parsed date, or None if the value cannot be parsed
        """
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        dt = self.parse_datetime(value)
        return dt.date() if dt else None

    def parse_repeat(self, data: dict[str, Any], start: Optional[datetime] = None) -> RepeatRule:
        """
        Parse a repeat rule record.

        Args:
            data: Record with interval, interval_type, week_repeat_days,
                end_on and overrides
            start: Start of the owning event, used for validation

        Returns:
            Validated repeat rule

        Raises:
            ValueError: If the record is malformed or violates a rule invariant
        """
        if not isinstance(data, dict):
            raise ValueError("Repeat rule must be an object")

        try:
            interval = int(data.get("interval", 1))
        except (TypeError, ValueError):
            raise ValueError(f"Invalid repeat interval: {data.get('interval')!r}")

        end_on = None
        if data.get("end_on"):
            end_on = self.parse_date(data["end_on"])
            if end_on is None:
                raise ValueError(f"Invalid repeat end_on: {data['end_on']!r}")

        overrides = set()
        for raw in data.get("overrides") or []:
            day = self.parse_date(raw)
            if day is None:
                raise ValueError(f"Invalid repeat override: {raw!r}")
            overrides.add(day)

        try:
            week_days = frozenset(int(d) for d in data.get("week_repeat_days") or [])
        except (TypeError, ValueError):
            raise ValueError("week_repeat_days must be a list of weekday indices")

        rule = RepeatRule(
            interval=interval,
            interval_type=str(data.get("interval_type", "week")),
            week_repeat_days=week_days,
            end_on=end_on,
            overrides=frozenset(overrides),
        )
        validate_rule(rule, start)
        return rule

    def parse_event(self, record: EventRecord) -> CalendarEvent:
        """
        Parse one event record.

        Args:
            record: Event record from the store

        Returns:
            Parsed calendar event

        Raises:
            ValueError: If the record has no id, no parsable start, an end
                before its start, or an invalid repeat rule
        """
        if not isinstance(record, dict):
            raise ValueError("Event record must be an object")
        if not record.get("id"):
            raise ValueError("Event record is missing 'id'")

        start = self.parse_datetime(record.get("start"))
        if start is None:
            raise ValueError(f"Event {record['id']} has no valid start time")

        end = None
        if record.get("end"):
            end = self.parse_datetime(record["end"])
            if end is None:
                raise ValueError(f"Event {record['id']} has an invalid end time")
            if end < start:
                raise ValueError(f"Event {record['id']} ends before it starts")

        repeat = None
        if record.get("repeat"):
            repeat = self.parse_repeat(record["repeat"], start)

        return CalendarEvent(
            id=str(record["id"]),
            title=record.get("title") or "Untitled Event",
            start=start,
            end=end,
            all_day=bool(record.get("all_day", False)),
            color=record.get("color"),
            channel=record.get("channel"),
            description=record.get("description") or "",
            repeat=repeat,
        )

    def parse_events(self, records: list[EventRecord]) -> list[CalendarEvent]:
        """
        Parse a list of event records, skipping invalid ones.

        Args:
            records: Event records

        Returns:
            Successfully parsed events
        """
        events: list[CalendarEvent] = []
        for record in records:
            try:
                events.append(self.parse_event(record))
            except ValueError as e:
                print(f"Warning: Skipping event record: {e}", file=sys.stderr)
        return events

    def parse_content(self, content: str) -> list[CalendarEvent]:
        """
        Parse a JSON document of event records.

        Accepts a top-level list or an object with an "events" list.

        Args:
            content: Raw JSON text

        Returns:
            List of parsed events

        Raises:
            ValueError: If the content is not valid JSON or has the wrong shape
        """
        if not content or not isinstance(content, str):
            raise ValueError("Content must be a non-empty string")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON format: {e}")

        if isinstance(data, dict):
            data = data.get("events")
        if not isinstance(data, list):
            raise ValueError("Event content must be a list or an object with an 'events' list")
        return self.parse_events(data)
