"""Command-line interface for inspecting calgrid layouts."""

import sys
import argparse
from datetime import date, datetime
from typing import Optional
from .colors import Colors
from .calendar_manager import VIEW_KINDS, VIEW_WEEK, CalendarManager
from .config import CalendarSettings, find_default_config, load_config, parse_timezone
from .view import LayoutView


def _load_settings(path: str) -> CalendarSettings:
    try:
        return load_config(path)
    except FileNotFoundError:
        print(f"Error: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except PermissionError:
        print(f"Error: Permission denied reading config file: {path}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: Invalid config file: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the calgrid CLI application."""
    parser = argparse.ArgumentParser(
        prog="calgrid",
        description="Expand, pack and print calendar events as a day, week or month layout",
        epilog="""
Examples:
  %(prog)s events.json                           # Week layout of a local event file
  %(prog)s -c config.json                        # Use config file (calgrid.json auto-detected)
  %(prog)s -d 2025-12-25 events.json             # Week containing a specific date
  %(prog)s -v month events.json                  # Month grid with all-day rows
  %(prog)s -tz +05:30 events.json                # View with UTC offset

Config file format (calgrid.json):
  {
    "events": ["team.json", "personal.json"],
    "timezone": "UTC",
    "week_start": 0,
    "subdivisions": 4
  }
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "sources",
        nargs="*",
        metavar="FILE",
        help="JSON event files (a list of event records or an object with an 'events' list).",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to JSON configuration file containing event files and settings. "
        "If not specified, looks for 'calgrid.json' in the current directory.",
    )
    parser.add_argument(
        "-d",
        "--date",
        metavar="YYYY-MM-DD",
        help="Any date inside the period to show. Default: today.",
    )
    parser.add_argument(
        "-v",
        "--view",
        choices=VIEW_KINDS,
        default=VIEW_WEEK,
        help="Period to lay out. Default: week.",
    )
    parser.add_argument(
        "-tz",
        "--timezone",
        metavar="TZ",
        help="Timezone for displaying events. Supports: 'UTC', 'LOCAL', or offset format like '+05:30' or '-08:00'. "
        "Default: local timezone.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for non-interactive terminals or piping).",
    )
    parser.add_argument(
        "--subdivisions",
        type=int,
        metavar="N",
        help="Grid units per hour used when reporting layouts. Default: 4.",
    )
    args = parser.parse_args(argv)

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    day: date = date.today()
    if args.date:
        try:
            day = datetime.strptime(args.date, "%Y-%m-%d").date()
        except ValueError:
            print(
                f"Error: Invalid date format '{args.date}'. Use YYYY-MM-DD (e.g., 2025-01-15)",
                file=sys.stderr,
            )
            sys.exit(1)

    settings = CalendarSettings()
    if args.config:
        settings = _load_settings(args.config)
    elif not args.sources:
        default = find_default_config()
        if default:
            print(f"Using config file: {default}", file=sys.stderr)
            settings = _load_settings(default)

    sources = settings.sources + args.sources
    if not sources:
        print("Error: No event files provided.", file=sys.stderr)
        print("Use --help for usage information.", file=sys.stderr)
        sys.exit(1)

    if args.subdivisions is not None:
        if args.subdivisions < 1:
            print("Error: --subdivisions must be at least 1", file=sys.stderr)
            sys.exit(1)
        settings.subdivisions = args.subdivisions

    tz_str = args.timezone or settings.timezone
    tz = parse_timezone(tz_str) if tz_str else None

    manager = CalendarManager(
        target_timezone=tz,
        week_start=settings.week_start,
        show_progress=sys.stderr.isatty(),
        aliases=settings.aliases,
    )
    manager.load_sources(sources)

    if manager.count_events() == 0:
        print("No events found in the event file(s).", file=sys.stderr)
        sys.exit(1)

    try:
        layout = manager.layout(args.view, day)
    except ValueError as e:
        print(f"Error: Failed to lay out events: {e}", file=sys.stderr)
        sys.exit(1)

    view = LayoutView(
        layout,
        today=datetime.now(manager.target_timezone),
        subdivisions=settings.subdivisions,
    )
    view.display()
