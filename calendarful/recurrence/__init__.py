"""Recurrence strategies and their registry."""

from calendarful.recurrence.base import RecurrenceStrategy
from calendarful.recurrence.registry import RecurrenceRegistry
from calendarful.recurrence.rrule_strategies import (
    BUILTIN_STRATEGIES,
    DailyRecurrence,
    MonthlyRecurrence,
    RRuleRecurrence,
    WeeklyRecurrence,
)

__all__ = [
    "BUILTIN_STRATEGIES",
    "DailyRecurrence",
    "MonthlyRecurrence",
    "RRuleRecurrence",
    "RecurrenceRegistry",
    "RecurrenceStrategy",
    "WeeklyRecurrence",
]
