"""Event resolution pipeline architecture for calendarful.

A resolution runs a fixed sequence of stages over a shared context:
fetch candidates, expand templates, drop templates, resolve overrides,
filter to the window, paginate. Keeping each step in its own stage keeps
every step testable in isolation.

Usage:
    pipeline = ResolutionPipeline()
    pipeline.add_stage(FetchStage())
    pipeline.add_stage(ExpansionStage(registry))

    context = ResolutionContext(source=source, from_date=start, to_date=end)
    result = pipeline.process(context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Protocol

from calendarful.models import Event

if TYPE_CHECKING:
    from calendarful.sources import EventSource

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """Context passed between pipeline stages.

    Stages read the query from it and replace context.events with their output.
    """

    # Query
    source: Optional[EventSource] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    limit: Optional[int] = None
    extra_filters: dict[str, Any] = field(default_factory=dict)

    # Processing state (modified by stages)
    events: list[Event] = field(default_factory=list)

    # Metadata
    calendar_name: Optional[str] = None

    def filters(self) -> dict[str, Any]:
        """Build the filters mapping handed to the event source."""
        filters: dict[str, Any] = dict(self.extra_filters)
        filters.update({"from": self.from_date, "to": self.to_date, "limit": self.limit})
        return filters


@dataclass
class StageResult:
    """Statistics reported by a single stage."""

    stage_name: str = ""
    events_in: int = 0
    events_out: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def events_filtered(self) -> int:
        return max(self.events_in - self.events_out, 0)


@dataclass
class ResolutionResult:
    """Result of a complete pipeline run."""

    events: list[Event] = field(default_factory=list)
    stages: list[StageResult] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def events_out(self) -> int:
        return len(self.events)


class EventProcessor(Protocol):
    """Protocol for a single stage in the resolution pipeline.

    Each stage:
    - Receives the ResolutionContext
    - Replaces context.events with its output
    - Returns a StageResult with its statistics
    """

    def process(self, context: ResolutionContext) -> StageResult:
        ...

    @property
    def name(self) -> str:
        """Name of this stage for logging."""
        ...


class ResolutionPipeline:
    """Runs resolution stages in sequence over one context.

    Stage exceptions are logged and re-raised unchanged; the pipeline never
    returns a partial result.
    """

    def __init__(self) -> None:
        self.stages: list[EventProcessor] = []

    def add_stage(self, stage: EventProcessor) -> ResolutionPipeline:
        """Add a stage to the pipeline (builder pattern).

        Args:
            stage: Stage to append

        Returns:
            Self for method chaining
        """
        self.stages.append(stage)
        logger.debug("Added stage to pipeline: %s", stage.name)
        return self

    def process(self, context: ResolutionContext) -> ResolutionResult:
        """Execute all stages in sequence.

        Args:
            context: Resolution context with the query filled in

        Returns:
            Final events plus per-stage statistics
        """
        logger.debug("Starting pipeline with %d stages", len(self.stages))
        result = ResolutionResult()

        for i, stage in enumerate(self.stages):
            stage_num = i + 1
            try:
                stage_result = stage.process(context)
            except Exception:
                logger.exception(
                    "Pipeline stopped at stage %d/%d (%s)", stage_num, len(self.stages), stage.name
                )
                raise

            logger.debug(
                "Stage %d/%d (%s) completed: events_in=%d, events_out=%d",
                stage_num,
                len(self.stages),
                stage.name,
                stage_result.events_in,
                stage_result.events_out,
            )
            result.stages.append(stage_result)
            result.metadata.update(stage_result.metadata)

        result.events = list(context.events)
        logger.info(
            "Resolved %d events for calendar %r (%s to %s)",
            result.events_out,
            context.calendar_name,
            context.from_date,
            context.to_date,
        )
        return result

    def clear_stages(self) -> None:
        """Remove all stages from the pipeline."""
        self.stages.clear()

    def __repr__(self) -> str:
        stage_names = [stage.name for stage in self.stages]
        return f"ResolutionPipeline(stages={stage_names})"
