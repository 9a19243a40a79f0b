"""Configuration constants for the calgrid engine."""

# Event settings
DEFAULT_EVENT_DURATION_HOURS = 1
HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7

# Weekday indices are 0 = Sunday ... 6 = Saturday
SUNDAY = 0
DEFAULT_WEEK_START = SUNDAY

# Repeat rule units
INTERVAL_TYPES = ("day", "week", "month", "year")

# Grid settings
DEFAULT_SUBDIVISIONS = 4  # 15-minute snapping
DEFAULT_DAY_COLUMNS = 7

# Layout cache settings
DEFAULT_LAYOUT_CACHE_SIZE = 64

# Config file settings
DEFAULT_CONFIG_FILES = ["calgrid.json", ".calgrid.json"]
