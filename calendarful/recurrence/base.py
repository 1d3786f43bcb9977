"""Recurrence strategy contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from calendarful.models import Event


class RecurrenceStrategy(ABC):
    """Pluggable expander turning templates into generated occurrences.

    Implementations must not mutate the events they receive and must keep no
    per-call state, so one instance can serve any number of calendars.
    """

    @abstractmethod
    def label(self) -> str:
        """Recurrence type handled by this strategy (matched against Event.recurrence_type)."""

    @abstractmethod
    def limit(self) -> int:
        """Safety cap on the occurrences produced for a single template."""

    @abstractmethod
    def expand(
        self,
        events: Sequence[Event],
        from_date: datetime,
        to_date: datetime,
        limit: Optional[int] = None,
    ) -> list[Event]:
        """Generate occurrences for every template in events carrying this label.

        Args:
            events: Full candidate set; non-matching events are ignored
            from_date: Start of the query window
            to_date: End of the query window
            limit: Optional caller cap, applied per template on top of limit()

        Returns:
            Generated occurrences (see Event.occurrence_of)
        """

    def templates(self, events: Sequence[Event]) -> list[Event]:
        """Return the templates in events handled by this strategy."""
        label = self.label()
        return [event for event in events if event.recurrence_type == label]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(label={self.label()!r}, limit={self.limit()})"
