"""Reference recurrence strategies backed by dateutil.rrule.

These cover plain "every N days/weeks/months" templates. Anything richer
(BYDAY lists, COUNT, EXDATE) belongs in a caller-supplied strategy.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Optional

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule

from calendarful.exceptions import RecurrenceExpansionError
from calendarful.models import Event
from calendarful.recurrence.base import RecurrenceStrategy

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 250


class RRuleRecurrence(RecurrenceStrategy):
    """Expand templates on a fixed dateutil frequency.

    Subclasses only pick the frequency and the default label.
    """

    frequency: int = DAILY
    default_label: str = ""

    def __init__(
        self,
        interval: int = 1,
        max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
        label: Optional[str] = None,
    ) -> None:
        """Initialize strategy.

        Args:
            interval: Step between occurrences, in units of the frequency
            max_occurrences: Cap on occurrences generated per template
            label: Recurrence type to answer to (defaults to default_label)
        """
        if interval < 1:
            raise ValueError("interval must be at least 1")
        if max_occurrences < 1:
            raise ValueError("max_occurrences must be at least 1")
        self._interval = interval
        self._max_occurrences = max_occurrences
        self._label = label or self.default_label

    def label(self) -> str:
        return self._label

    def limit(self) -> int:
        return self._max_occurrences

    def expand(
        self,
        events: Sequence[Event],
        from_date: datetime,
        to_date: datetime,
        limit: Optional[int] = None,
    ) -> list[Event]:
        """Generate occurrences whose span touches [from_date, to_date].

        Raises:
            RecurrenceExpansionError: If dateutil cannot iterate the rule
        """
        templates = self.templates(events)
        if not templates:
            return []

        # Each override of a template may move one of its occurrences out of
        # the window, so the caller limit is widened by that many.
        override_counts: dict[object, int] = {}
        for event in events:
            if event.is_override:
                override_counts[event.parent_id] = override_counts.get(event.parent_id, 0) + 1

        occurrences: list[Event] = []
        for template in templates:
            cap = self._max_occurrences
            if limit is not None:
                cap = min(cap, limit + override_counts.get(template.id, 0))
            occurrences.extend(self._expand_template(template, from_date, to_date, cap))

        logger.debug(
            "%s expansion: %d templates -> %d occurrences (window %s to %s)",
            self._label,
            len(templates),
            len(occurrences),
            from_date,
            to_date,
        )
        return occurrences

    def _expand_template(
        self, template: Event, from_date: datetime, to_date: datetime, cap: int
    ) -> list[Event]:
        if cap <= 0:
            return []

        # An occurrence starting up to one duration before the window still overlaps it
        window_start = from_date - template.duration

        # rrule works in whole seconds; the template's microseconds are
        # removed for iteration and added back to every generated instant
        micro = timedelta(microseconds=template.start_date.microsecond)
        until = template.recurrence_until
        if until is not None:
            until -= micro

        try:
            rule = rrule(
                self.frequency,
                dtstart=template.start_date - micro,
                interval=self._interval,
                until=until,
            )
            instances = []
            for instant in rule.xafter(window_start - micro, inc=True):
                occurrence = instant + micro
                if occurrence > to_date:
                    break
                if len(instances) >= cap:
                    logger.debug(
                        "Expansion of template %r limited to %d occurrences", template.id, cap
                    )
                    break
                instances.append(Event.occurrence_of(template, occurrence))
        except (TypeError, ValueError) as e:
            logger.exception("RRULE expansion failed for template %r", template.id)
            raise RecurrenceExpansionError(
                f"Failed to expand template {template.id!r} with {self._label!r}: {e}"
            ) from e

        return instances


class DailyRecurrence(RRuleRecurrence):
    """Every day (or every interval days) from the template start."""

    frequency = DAILY
    default_label = "daily"


class WeeklyRecurrence(RRuleRecurrence):
    """Same weekday and time every week (or every interval weeks)."""

    frequency = WEEKLY
    default_label = "weekly"


class MonthlyRecurrence(RRuleRecurrence):
    """Same day of month every month; months lacking that day are skipped."""

    frequency = MONTHLY
    default_label = "monthly"


BUILTIN_STRATEGIES: dict[str, type[RRuleRecurrence]] = {
    DailyRecurrence.default_label: DailyRecurrence,
    WeeklyRecurrence.default_label: WeeklyRecurrence,
    MonthlyRecurrence.default_label: MonthlyRecurrence,
}
