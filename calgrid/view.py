from datetime import datetime
from typing import Optional
from .colors import Colors
from .constants import DEFAULT_SUBDIVISIONS
from .models import PackedLayout, PackedSlot, PeriodLayout

WIDTH = 80


class LayoutView:
    """Render packed period layouts as a plain-text report."""

    def __init__(
        self,
        layout: PeriodLayout,
        today: Optional[datetime] = None,
        subdivisions: int = DEFAULT_SUBDIVISIONS,
    ) -> None:
        self.layout: PeriodLayout = layout
        self.today: Optional[datetime] = today
        self.subdivisions: int = subdivisions

    def format_time(self, dt: datetime) -> str:
        return dt.strftime("%H:%M")

    def truncate(self, text: str, n: int) -> str:
        return text if len(text) <= n else text[: n - 3] + "..."

    def _banner(self, title: str) -> list[str]:
        return [
            f"{Colors.BOLD}{'═' * WIDTH}{Colors.RESET}",
            f"{Colors.BOLD}{Colors.CYAN}{title.center(WIDTH)}{Colors.RESET}",
            f"{Colors.BOLD}{'═' * WIDTH}{Colors.RESET}",
        ]

    def _day_header(self, day: datetime) -> list[str]:
        is_today = self.today is not None and day.date() == self.today.date()
        color = Colors.GREEN if is_today else Colors.WHITE
        return [
            "",
            f"{Colors.BOLD}{color}{day.strftime('%A, %b %d')}{Colors.RESET}",
            f"{Colors.DIM}{'─' * WIDTH}{Colors.RESET}",
        ]

    def format_slot(self, slot: PackedSlot) -> str:
        """
        Format one timed slot.

        Shows the clipped time range, arrows where the occurrence continues
        past the day, the grid rows it covers and its lane and width.

        Args:
            slot: Packed timed slot

        Returns:
            Single report line
        """
        occurrence = slot.occurrence
        prev_mark = "↑" if slot.has_prev else " "
        next_mark = "↓" if slot.has_next else " "
        time_range = f"{prev_mark}{self.format_time(slot.start)} - {self.format_time(slot.end)}{next_mark}"
        first_row = round(slot.top * self.subdivisions)
        row_count = max(round(slot.height * self.subdivisions), 1)
        placement = f"r{first_row}+{row_count} lane {slot.index} {slot.span:.2f}"
        title = self.truncate(occurrence.title, WIDTH - 44)
        color = Colors.for_event(occurrence.event.color)
        return f"  {color}{time_range:<16}{Colors.RESET}{Colors.DIM}{placement:<24}{Colors.RESET}{title}"

    def format_row_slot(self, slot: PackedSlot, days: list[datetime]) -> str:
        """Format one all-day slot with its first and last visible day."""
        first = days[slot.left].strftime("%a %d")
        last = days[slot.left + slot.width - 1].strftime("%a %d")
        span_text = first if slot.width == 1 else f"{first} - {last}"
        prev_mark = "◀ " if slot.has_prev else ""
        next_mark = " ▶" if slot.has_next else ""
        title = self.truncate(slot.occurrence.title, WIDTH - 32)
        color = Colors.for_event(slot.occurrence.event.color)
        return f"  {Colors.DIM}row {slot.index:<3}{Colors.RESET}{span_text:<18}{color}{prev_mark}{title}{next_mark}{Colors.RESET}"

    def _rows(self, rows: PackedLayout, days: list[datetime]) -> list[str]:
        if not rows.slots:
            return []
        lines = [f"{Colors.BOLD}All day{Colors.RESET}"]
        for slot in sorted(rows.slots, key=lambda s: (s.index, s.left)):
            lines.append(self.format_row_slot(slot, days))
        return lines

    def _timed(self, day: datetime, timed: PackedLayout) -> list[str]:
        lines = self._day_header(day)
        if not timed.slots:
            lines.append(f"{Colors.DIM}  No events{Colors.RESET}")
            return lines
        for slot in sorted(timed.slots, key=lambda s: (s.start, s.index)):
            lines.append(self.format_slot(slot))
        return lines

    def _total(self) -> list[str]:
        seen = set()
        for packed in self.layout.timed + self.layout.rows:
            for slot in packed.slots:
                seen.add((slot.occurrence.event_id, slot.occurrence.start))
        total_text = f"Total occurrences: {len(seen)}"
        return [
            "",
            f"{Colors.BOLD}{'═' * WIDTH}{Colors.RESET}",
            f"{Colors.BOLD}{total_text.center(WIDTH)}{Colors.RESET}",
        ]

    def render_day(self) -> str:
        layout = self.layout
        day = layout.days[0]
        lines = self._banner(day.strftime("%A, %B %d %Y"))
        lines += self._rows(layout.rows[0], layout.days)
        lines += self._timed(day, layout.timed[0])
        lines += self._total()
        return "\n".join(lines)

    def render_week(self) -> str:
        layout = self.layout
        lines = self._banner(f"Week of {layout.start.strftime('%B %d, %Y')}")
        lines += self._rows(layout.rows[0], layout.days)
        for day, timed in zip(layout.days, layout.timed):
            lines += self._timed(day, timed)
        lines += self._total()
        return "\n".join(lines)

    def render_month(self) -> str:
        """
        Render a month grid week by week.

        Each week lists its all-day rows, then the timed slots of the days
        that have any.
        """
        layout = self.layout
        middle = layout.days[len(layout.days) // 2]
        lines = self._banner(middle.strftime("%B %Y"))
        row_length = len(layout.days) // max(len(layout.rows), 1)
        for week, rows in enumerate(layout.rows):
            week_days = layout.days[week * row_length : (week + 1) * row_length]
            week_timed = layout.timed[week * row_length : (week + 1) * row_length]
            lines.append("")
            lines.append(f"{Colors.BOLD}{Colors.YELLOW}Week of {week_days[0].strftime('%b %d')}{Colors.RESET}")
            lines += self._rows(rows, week_days)
            for day, timed in zip(week_days, week_timed):
                if timed.slots:
                    lines += self._timed(day, timed)
        lines += self._total()
        return "\n".join(lines)

    def render(self) -> str:
        """Render the layout with the report matching its kind."""
        if self.layout.kind == "day":
            return self.render_day()
        if self.layout.kind == "month":
            return self.render_month()
        return self.render_week()

    def display(self) -> None:
        print(self.render())
