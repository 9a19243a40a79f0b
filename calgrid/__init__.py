"""Calendar engine: recurrence expansion, layout packing and grid drags."""

from .actions import CalendarActions, create_draft, drop_to_time_range, resolve_delete, resolve_edit
from .calendar_manager import CalendarManager
from .event_collection import EventCollection
from .grid import CallbackRef, GridConfig, GridGeometry, GridInteractionController
from .layout import LayoutPacker
from .models import CalendarEvent, Occurrence, RepeatRule
from .parser import EventParser
from .recurrence import expand, occurs_on

__version__ = "0.1.0"
