"""Configuration file loading and timezone parsing utilities."""

import os
import sys
import json
import re
from dataclasses import dataclass, field
from datetime import timedelta, timezone
from typing import Optional
from pathlib import Path
from .constants import DEFAULT_CONFIG_FILES, DEFAULT_SUBDIVISIONS, DEFAULT_WEEK_START


@dataclass
class CalendarSettings:
    """
    Settings read from a configuration file.

    Attributes:
        sources: Event files to load
        timezone: Timezone string, parsed later with parse_timezone
        week_start: Weekday index the week starts on (0 = Sunday)
        subdivisions: Grid units per hour
        aliases: Maps a source path to a friendly name
    """

    sources: list[str] = field(default_factory=list)
    timezone: Optional[str] = None
    week_start: int = DEFAULT_WEEK_START
    subdivisions: int = DEFAULT_SUBDIVISIONS
    aliases: dict[str, str] = field(default_factory=dict)


def find_default_config() -> Optional[str]:
    """
    Find a default configuration file in multiple locations.

    Searches for configuration files in priority order:
    1. Current directory: ./calgrid.json, ./.calgrid.json
    2. User home directory: ~/.calgrid.json
    3. User config directory:
       - Linux/macOS: ~/.config/calgrid/config.json
       - macOS: ~/Library/Application Support/calgrid/config.json
       - Windows: %APPDATA%/calgrid/config.json

    Returns:
        Path to the first found config file, or None if none found
    """
    for name in DEFAULT_CONFIG_FILES:
        if os.path.isfile(name):
            return name

    home_config = Path.home() / ".calgrid.json"
    if home_config.is_file():
        return str(home_config)

    config_dir = _get_config_directory()
    if config_dir:
        config_file = config_dir / "config.json"
        if config_file.is_file():
            return str(config_file)

    return None


def _get_config_directory() -> Optional[Path]:
    """
    Get the platform-specific configuration directory for calgrid.

    Returns:
        Path to config directory, or None if it cannot be determined
    """
    home = Path.home()

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "calgrid"

    if sys.platform == "darwin":
        xdg_default = home / ".config" / "calgrid"
        if xdg_default.exists():
            return xdg_default
        return home / "Library" / "Application Support" / "calgrid"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "calgrid"
        return home / "AppData" / "Roaming" / "calgrid"
    else:
        return home / ".config" / "calgrid"


def parse_timezone(tz_string: Optional[str]) -> Optional[timezone]:
    """
    Parse a timezone string into a timezone object.

    Supports:
    - "UTC" or "GMT"
    - "LOCAL" (returns None for system local time)
    - Offset format: "+05:30", "-08:00", etc.

    Args:
        tz_string: Timezone string to parse

    Returns:
        Parsed timezone object, or None for local/invalid timezones
    """
    if not tz_string:
        return None
    s = tz_string.strip().upper()
    if s in ("UTC", "GMT"):
        return timezone.utc
    if s == "LOCAL":
        return None
    m = re.match(r"^([+-])(\d{2}):?(\d{2})$", s)
    if m:
        sign = 1 if m[1] == "+" else -1
        return timezone(sign * timedelta(hours=int(m[2]), minutes=int(m[3])))
    print(f"Warning: Invalid timezone '{tz_string}', using local.", file=sys.stderr)
    return None


def _int_setting(cfg: dict, name: str, default: int, low: int, high: Optional[int] = None) -> int:
    try:
        value = int(cfg.get(name, default))
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid '{name}' value: {e}")
    if value < low or (high is not None and value > high):
        raise ValueError(f"Invalid '{name}' value: {value} is out of range")
    return value


def load_config(path: str) -> CalendarSettings:
    """
    Load calendar configuration from a JSON file.

    Expected JSON structure:
    {
        "events": ["team.json", "/path/to/personal.json"],
        "timezone": "UTC" or "+05:30",
        "week_start": 0,
        "subdivisions": 4
    }

    "events" may also map friendly names to files:
    {"events": {"Team": "team.json"}}

    Args:
        path: Path to the JSON configuration file

    Returns:
        Parsed settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        PermissionError: If config file can't be read
        ValueError: If config format is invalid
    """
    try:
        with open(path, encoding="utf-8") as f:
            cfg = json.load(f)
    except FileNotFoundError:
        raise
    except PermissionError:
        raise
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON format: {e}")
    except Exception as e:
        raise ValueError(f"Failed to read config file: {e}")

    if not isinstance(cfg, dict):
        raise ValueError("Config file must contain a JSON object")

    if "events" not in cfg:
        raise ValueError("Config file must contain 'events' field")

    events_field = cfg.get("events")
    sources: list[str] = []
    aliases: dict[str, str] = {}

    if isinstance(events_field, dict):
        if not events_field:
            raise ValueError("'events' dict cannot be empty")
        for alias, source in events_field.items():
            if not isinstance(source, str):
                raise ValueError(f"Event file for '{alias}' must be a string")
            sources.append(source)
            aliases[source] = alias
    elif isinstance(events_field, list):
        if not events_field:
            raise ValueError("'events' list cannot be empty")
        if not all(isinstance(s, str) for s in events_field):
            raise ValueError("'events' list must contain file paths")
        sources = list(events_field)
    else:
        raise ValueError("'events' must be a list or dict")

    return CalendarSettings(
        sources=sources,
        timezone=cfg.get("timezone"),
        week_start=_int_setting(cfg, "week_start", DEFAULT_WEEK_START, 0, 6),
        subdivisions=_int_setting(cfg, "subdivisions", DEFAULT_SUBDIVISIONS, 1),
        aliases=aliases,
    )
