"""calendarful - resolve the visible occurrences of a calendar for a date window.

Events come from an event source; recurring templates are expanded by
pluggable recurrence strategies and single occurrences can be overridden by
standalone events referencing the template.
"""

__version__ = "0.1.0"

from calendarful.calendar import Calendar, CalendarState
from calendarful.calendar_logging import configure_logging
from calendarful.core.config_manager import CalendarSettings, ConfigManager
from calendarful.exceptions import (
    CalendarError,
    InvalidRangeError,
    MixedEventIdError,
    NotPopulatedError,
    RecurrenceExpansionError,
    UnknownRecurrenceTypeError,
)
from calendarful.factory import CalendarFactory
from calendarful.models import CompositeKey, Event
from calendarful.recurrence import (
    DailyRecurrence,
    MonthlyRecurrence,
    RecurrenceRegistry,
    RecurrenceStrategy,
    WeeklyRecurrence,
)
from calendarful.sources import EventSource, InMemoryEventSource

__all__ = [
    "Calendar",
    "CalendarError",
    "CalendarFactory",
    "CalendarSettings",
    "CalendarState",
    "CompositeKey",
    "ConfigManager",
    "DailyRecurrence",
    "Event",
    "EventSource",
    "InMemoryEventSource",
    "InvalidRangeError",
    "MixedEventIdError",
    "MonthlyRecurrence",
    "NotPopulatedError",
    "RecurrenceExpansionError",
    "RecurrenceRegistry",
    "RecurrenceStrategy",
    "UnknownRecurrenceTypeError",
    "WeeklyRecurrence",
    "configure_logging",
    "__version__",
]
