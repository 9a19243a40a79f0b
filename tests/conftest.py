import json
import pytest
from datetime import date, datetime, timezone
from calgrid.models import CalendarEvent, RepeatRule


@pytest.fixture
def make_event():
    def _make(
        id="evt-1",
        title="Event",
        start=None,
        end=None,
        all_day=False,
        repeat=None,
        **kwargs,
    ):
        if start is None:
            start = datetime(2025, 1, 13, 10, 0, tzinfo=timezone.utc)
        return CalendarEvent(
            id=id,
            title=title,
            start=start,
            end=end,
            all_day=all_day,
            repeat=repeat,
            **kwargs,
        )

    return _make


@pytest.fixture
def weekly_meeting(make_event):
    """Monday 10:00-11:00, repeating every Monday and Wednesday."""
    return make_event(
        id="weekly",
        title="Planning",
        start=datetime(2025, 1, 13, 10, 0, tzinfo=timezone.utc),
        end=datetime(2025, 1, 13, 11, 0, tzinfo=timezone.utc),
        repeat=RepeatRule(interval=1, interval_type="week", week_repeat_days=frozenset({1, 3})),
    )


@pytest.fixture
def daily_standup(make_event):
    return make_event(
        id="daily",
        title="Standup",
        start=datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
        end=datetime(2025, 1, 1, 9, 15, tzinfo=timezone.utc),
        repeat=RepeatRule(interval=1, interval_type="day"),
    )


@pytest.fixture
def offsite(make_event):
    """All-day event from Friday 10 to Monday 13 January 2025."""
    return make_event(
        id="offsite",
        title="Offsite",
        start=datetime(2025, 1, 10, tzinfo=timezone.utc),
        end=datetime(2025, 1, 13, tzinfo=timezone.utc),
        all_day=True,
    )


@pytest.fixture
def sample_records():
    return [
        {
            "id": "review",
            "title": "Design Review",
            "start": "2025-01-14T10:00:00Z",
            "end": "2025-01-14T11:00:00Z",
            "color": "green",
        },
        {
            "id": "sync",
            "title": "Sync",
            "start": "2025-01-14T10:30:00Z",
            "end": "2025-01-14T11:30:00Z",
        },
        {
            "id": "standup",
            "title": "Standup",
            "start": "2025-01-13T09:00:00Z",
            "end": "2025-01-13T09:15:00Z",
            "repeat": {
                "interval": 1,
                "interval_type": "week",
                "week_repeat_days": [1, 2, 3, 4, 5],
                "overrides": ["2025-01-15"],
            },
        },
        {
            "id": "offsite",
            "title": "Offsite",
            "start": "2025-01-10",
            "end": "2025-01-13",
            "all_day": True,
        },
    ]


@pytest.fixture
def events_file(tmp_path, sample_records):
    path = tmp_path / "events.json"
    path.write_text(json.dumps(sample_records))
    return path


@pytest.fixture
def first_monday():
    return date(2025, 1, 13)
