"""Event sources supplying candidate events to a calendar."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from calendarful.models import Event, EventId

logger = logging.getLogger(__name__)

# Keys the calendar always puts into the filters mapping
RESERVED_FILTER_KEYS = frozenset({"from", "to", "limit"})


@runtime_checkable
class EventSource(Protocol):
    """Protocol for anything that can supply candidate events.

    filters always contains "from", "to" and "limit", plus whatever extra
    filters the caller passed to Calendar.populate(). No ordering is expected
    of the returned events. Errors raised here reach the populate() caller
    unchanged.
    """

    def get(self, filters: Mapping[str, Any]) -> list[Event]:
        ...


class InMemoryEventSource:
    """Event source backed by a dict of events keyed by ID.

    get() never filters by date range: templates whose own span lies outside
    the window must still reach the recurrence strategies. Extra filters whose
    key names an Event field are applied as equality matches; other keys are
    ignored.
    """

    def __init__(self, events: Iterable[Event] = ()) -> None:
        self._events: dict[EventId, Event] = {}
        for event in events:
            self.set(event)

    def set(self, event: Event) -> None:
        """Add or replace an event."""
        self._events[event.id] = event

    def remove(self, event_id: EventId) -> bool:
        """Remove an event by ID. Returns False if it was not present."""
        return self._events.pop(event_id, None) is not None

    def all(self) -> list[Event]:
        return list(self._events.values())

    def get(self, filters: Mapping[str, Any]) -> list[Event]:
        field_filters = {
            key: value
            for key, value in filters.items()
            if key not in RESERVED_FILTER_KEYS and key in Event.model_fields
        }
        ignored = set(filters) - RESERVED_FILTER_KEYS - set(field_filters)
        if ignored:
            logger.debug("Ignoring unknown event filters: %s", ", ".join(sorted(ignored)))

        events = [
            event
            for event in self._events.values()
            if all(getattr(event, key) == value for key, value in field_filters.items())
        ]
        logger.debug("In-memory source returned %d of %d events", len(events), len(self._events))
        return events

    def __iter__(self) -> Iterator[Event]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._events)
