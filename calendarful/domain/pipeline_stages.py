"""Concrete resolution stages, one per step of the resolution algorithm."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from calendarful.domain.pipeline import ResolutionContext, ResolutionPipeline, StageResult
from calendarful.exceptions import MixedEventIdError
from calendarful.models import CompositeKey, Event

if TYPE_CHECKING:
    from calendarful.recurrence.registry import RecurrenceRegistry

logger = logging.getLogger(__name__)


class FetchStage:
    """Ask the event source for the candidate events of the query."""

    def __init__(self) -> None:
        self._name = "Fetch"

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        if context.source is None:
            raise ValueError("ResolutionContext.source is required")

        # Source errors propagate unchanged
        context.events = list(context.source.get(context.filters()))

        id_types = {type(event.id).__name__ for event in context.events}
        if len(id_types) > 1:
            raise MixedEventIdError(
                f"Event source returned mixed id types: {', '.join(sorted(id_types))}"
            )

        logger.debug("Fetch: %d candidate events", len(context.events))
        return StageResult(stage_name=self.name, events_in=0, events_out=len(context.events))


class ExpansionStage:
    """Add the occurrences generated by every registered recurrence strategy.

    Every strategy sees the same candidate set. Templates stay in the working
    set; TemplateFilterStage removes them afterwards. A template whose label
    has no strategy produces nothing.
    """

    def __init__(self, registry: RecurrenceRegistry) -> None:
        self._name = "Expansion"
        self.registry = registry

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        candidates = tuple(context.events)
        result = StageResult(stage_name=self.name, events_in=len(candidates))

        generated: list[Event] = []
        for strategy in self.registry:
            occurrences = strategy.expand(
                candidates, context.from_date, context.to_date, context.limit
            )
            logger.debug("Strategy %r generated %d occurrences", strategy.label(), len(occurrences))
            generated.extend(occurrences)

        unexpandable = sorted(
            {
                event.recurrence_type
                for event in candidates
                if event.is_template and event.recurrence_type not in self.registry
            }
        )
        if unexpandable:
            logger.debug("No strategy registered for recurrence types: %s", ", ".join(unexpandable))

        context.events = list(candidates) + generated
        result.events_out = len(context.events)
        result.metadata["generated_occurrences"] = len(generated)
        return result


class TemplateFilterStage:
    """Drop recurring templates from the working set.

    Templates are expansion input only and are never visible themselves,
    whether or not their own span touches the window.
    """

    def __init__(self) -> None:
        self._name = "TemplateFilter"

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        result = StageResult(stage_name=self.name, events_in=len(context.events))

        context.events = [event for event in context.events if not event.is_template]

        result.events_out = len(context.events)
        if result.events_filtered:
            logger.debug("Template filter: removed %d templates", result.events_filtered)
        return result


class OverrideResolutionStage:
    """Deduplicate by composite key so overrides replace generated occurrences.

    Events are inserted in (start_date, id) order into a mapping keyed by
    CompositeKey; a later insertion wins, except that a generated occurrence
    never displaces an override. Output is sorted by (start_date, id).
    """

    def __init__(self) -> None:
        self._name = "OverrideResolution"

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        result = StageResult(stage_name=self.name, events_in=len(context.events))

        unique_events: dict[CompositeKey, Event] = {}
        replaced = 0
        for event in sorted(context.events, key=lambda e: e.sort_key):
            key = event.composite_key
            existing = unique_events.get(key)
            if existing is not None:
                if existing.is_override and event.is_generated:
                    continue
                replaced += 1
            unique_events[key] = event

        context.events = sorted(unique_events.values(), key=lambda e: e.sort_key)

        result.events_out = len(context.events)
        result.metadata["replaced_occurrences"] = replaced
        if replaced:
            logger.debug(
                "Override resolution: %d → %d events (%d replaced)",
                result.events_in,
                result.events_out,
                replaced,
            )
        return result


class TimeWindowStage:
    """Keep events whose span intersects the inclusive query window."""

    def __init__(self) -> None:
        self._name = "TimeWindow"

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        result = StageResult(stage_name=self.name, events_in=len(context.events))

        context.events = [
            event
            for event in context.events
            if event.intersects(context.from_date, context.to_date)
        ]

        result.events_out = len(context.events)
        logger.debug(
            "Time window: %d → %d events (window: %s to %s)",
            result.events_in,
            result.events_out,
            context.from_date,
            context.to_date,
        )
        return result


class EventLimitStage:
    """Keep the first limit events (input is already ordered)."""

    def __init__(self) -> None:
        self._name = "EventLimit"

    @property
    def name(self) -> str:
        return self._name

    def process(self, context: ResolutionContext) -> StageResult:
        result = StageResult(stage_name=self.name, events_in=len(context.events))

        if context.limit is not None:
            context.events = context.events[: context.limit]

        result.events_out = len(context.events)
        if result.events_filtered:
            logger.debug(
                "Event limit: %d → %d events (limit=%d)",
                result.events_in,
                result.events_out,
                context.limit,
            )
        return result


def build_resolution_pipeline(registry: RecurrenceRegistry) -> ResolutionPipeline:
    """Assemble the standard resolution pipeline.

    Args:
        registry: Strategies used by the expansion stage

    Returns:
        Pipeline running fetch, expansion, template filter, override
        resolution, time window and limit stages in that order
    """
    return (
        ResolutionPipeline()
        .add_stage(FetchStage())
        .add_stage(ExpansionStage(registry))
        .add_stage(TemplateFilterStage())
        .add_stage(OverrideResolutionStage())
        .add_stage(TimeWindowStage())
        .add_stage(EventLimitStage())
    )
