"""Calendar: resolves the visible occurrences of a calendar for a date window."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from calendarful.calendar_logging import new_resolution_id, resolution_id_var
from calendarful.domain.pipeline import ResolutionContext, ResolutionPipeline
from calendarful.domain.pipeline_stages import build_resolution_pipeline
from calendarful.exceptions import InvalidRangeError, NotPopulatedError
from calendarful.models import Event
from calendarful.recurrence.registry import RecurrenceRegistry
from calendarful.sources import EventSource

logger = logging.getLogger(__name__)


class CalendarState(str, Enum):
    """Lifecycle state of a Calendar."""

    UNPOPULATED = "unpopulated"
    POPULATED = "populated"


class Calendar:
    """A named calendar holding the result of its most recent resolution.

    populate() is the only way into the POPULATED state and may be called
    any number of times; each call replaces the stored result. A failed
    populate() leaves the previous state and result untouched.

    Example:
        calendar = Calendar("team", RecurrenceRegistry([WeeklyRecurrence()]))
        calendar.populate(source, datetime(2025, 1, 1), datetime(2025, 1, 31))
        for event in calendar.iterate():
            ...

    Not safe for concurrent populate() calls on the same instance.
    """

    def __init__(
        self,
        name: str,
        registry: Optional[RecurrenceRegistry] = None,
        default_limit: Optional[int] = None,
    ) -> None:
        """Initialize an unpopulated calendar.

        Args:
            name: Calendar name, used in log records
            registry: Recurrence strategies used to expand templates
            default_limit: Limit applied when populate() is given none
        """
        self.name = name
        self.registry = registry if registry is not None else RecurrenceRegistry()
        self.default_limit = default_limit
        self._pipeline: ResolutionPipeline = build_resolution_pipeline(self.registry)
        self._state = CalendarState.UNPOPULATED
        self._events: list[Event] = []

    @property
    def state(self) -> CalendarState:
        return self._state

    @property
    def is_populated(self) -> bool:
        return self._state is CalendarState.POPULATED

    def populate(
        self,
        source: EventSource,
        from_date: datetime,
        to_date: datetime,
        limit: Optional[int] = None,
        extra_filters: Optional[Mapping[str, Any]] = None,
    ) -> Calendar:
        """Resolve the visible events of [from_date, to_date] and store them.

        Args:
            source: Event source supplying the candidate events
            from_date: Start of the inclusive window
            to_date: End of the inclusive window
            limit: Maximum number of events kept (None = default_limit, then unlimited)
            extra_filters: Additional filters passed to the source unmodified

        Returns:
            Self for method chaining

        Raises:
            InvalidRangeError: If from_date is later than to_date
            ValueError: If limit is negative
        """
        if from_date > to_date:
            raise InvalidRangeError(
                f"from_date {from_date.isoformat()} is after to_date {to_date.isoformat()}"
            )
        if limit is None:
            limit = self.default_limit
        if limit is not None and limit < 0:
            raise ValueError(f"limit must not be negative, got {limit}")

        context = ResolutionContext(
            source=source,
            from_date=from_date,
            to_date=to_date,
            limit=limit,
            extra_filters=dict(extra_filters or {}),
            calendar_name=self.name,
        )

        token = resolution_id_var.set(new_resolution_id())
        try:
            result = self._pipeline.process(context)
        finally:
            resolution_id_var.reset(token)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Calendar %r stages: %s",
                self.name,
                ", ".join(f"{s.stage_name} {s.events_in}->{s.events_out}" for s in result.stages),
            )

        self._events = result.events
        self._state = CalendarState.POPULATED
        return self

    def iterate(self) -> Iterator[Event]:
        """Return a one-shot iterator over the stored result.

        Raises:
            NotPopulatedError: If the calendar has not been populated
        """
        self._require_populated("iterate")
        return iter(tuple(self._events))

    def sort(self) -> Calendar:
        """Re-order the stored result by start date, then ID.

        Raises:
            NotPopulatedError: If the calendar has not been populated
        """
        self._require_populated("sort")
        self._events.sort(key=lambda event: event.sort_key)
        return self

    def count(self) -> int:
        """Number of events in the stored result.

        Raises:
            NotPopulatedError: If the calendar has not been populated
        """
        self._require_populated("count")
        return len(self._events)

    def limit(self, limit: int, offset: int = 0) -> Calendar:
        """Keep limit events of the stored result starting at offset.

        Raises:
            NotPopulatedError: If the calendar has not been populated
            ValueError: If limit or offset is negative
        """
        self._require_populated("limit")
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must not be negative")
        self._events = self._events[offset : offset + limit]
        return self

    def by_day(self) -> dict[date, list[Event]]:
        """Group the stored result by the calendar day each event starts on.

        Days are in ascending order, as are the events within each day.

        Raises:
            NotPopulatedError: If the calendar has not been populated
        """
        self._require_populated("by_day")
        days: dict[date, list[Event]] = {}
        for event in sorted(self._events, key=lambda e: e.sort_key):
            days.setdefault(event.start_date.date(), []).append(event)
        return days

    def _require_populated(self, operation: str) -> None:
        if self._state is not CalendarState.POPULATED:
            raise NotPopulatedError(
                f"Calendar {self.name!r} must be populated before calling {operation}()"
            )

    def __iter__(self) -> Iterator[Event]:
        return self.iterate()

    def __repr__(self) -> str:
        if self.is_populated:
            return f"Calendar(name={self.name!r}, events={len(self._events)})"
        return f"Calendar(name={self.name!r}, state={self._state.value})"
