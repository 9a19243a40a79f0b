import pytest
from datetime import date, datetime, timezone
from calgrid.calendar_manager import CalendarManager
from calgrid.view import LayoutView

UTC = timezone.utc


@pytest.fixture
def manager(events_file):
    manager = CalendarManager(target_timezone=UTC, show_progress=False)
    manager.load_source(str(events_file))
    return manager


class TestFormatting:
    def test_truncate(self, manager):
        view = LayoutView(manager.day_layout(date(2025, 1, 14)))
        assert view.truncate("Short", 10) == "Short"
        assert view.truncate("A very long event title", 10) == "A very ..."

    def test_format_slot_placement(self, manager):
        layout = manager.day_layout(date(2025, 1, 14))
        view = LayoutView(layout)
        review = next(s for s in layout.timed[0].slots if s.occurrence.event_id == "review")
        line = view.format_slot(review)
        assert "10:00 - 11:00" in line
        assert "r40+4 lane 0 0.50" in line
        assert "Design Review" in line

    def test_format_slot_uses_subdivisions(self, manager):
        layout = manager.day_layout(date(2025, 1, 14))
        review = next(s for s in layout.timed[0].slots if s.occurrence.event_id == "review")
        assert "r20+2" in LayoutView(layout, subdivisions=2).format_slot(review)

    def test_continuation_marks(self, manager):
        manager.load_records(
            [
                {
                    "id": "late",
                    "title": "Late deploy",
                    "start": "2025-01-14T23:00:00Z",
                    "end": "2025-01-15T01:00:00Z",
                }
            ]
        )
        first = LayoutView(manager.day_layout(date(2025, 1, 14))).render()
        second = LayoutView(manager.day_layout(date(2025, 1, 15))).render()
        assert "23:00 - " in first and "↓" in first
        assert "↑00:00 - 01:00" in second


class TestRender:
    def test_render_week(self, manager):
        text = LayoutView(manager.week_layout(date(2025, 1, 14))).render()

        assert "Week of January 12, 2025" in text
        assert "All day" in text
        assert "◀ Offsite" in text
        assert "Design Review" in text
        assert "Sync" in text
        assert "No events" in text
        assert "Total occurrences: 7" in text

    def test_render_day_highlights_today(self, manager):
        layout = manager.day_layout(date(2025, 1, 14))
        text = LayoutView(layout, today=datetime(2025, 1, 14, 12, tzinfo=UTC)).render()
        assert "Tuesday, January 14 2025" in text
        assert "Total occurrences: 3" in text
        assert "All day" not in text

    def test_render_month(self, manager):
        text = LayoutView(manager.month_layout(date(2025, 1, 20))).render()
        assert "January 2025" in text
        assert "Week of Dec 29" in text
        assert "Offsite ▶" in text
        assert "◀ Offsite" in text

    def test_display(self, manager, capsys):
        LayoutView(manager.week_layout(date(2025, 1, 14))).display()
        assert "Week of January 12, 2025" in capsys.readouterr().out
