"""Resolution pipeline and its stages."""

from calendarful.domain.pipeline import (
    EventProcessor,
    ResolutionContext,
    ResolutionPipeline,
    ResolutionResult,
    StageResult,
)
from calendarful.domain.pipeline_stages import (
    EventLimitStage,
    ExpansionStage,
    FetchStage,
    OverrideResolutionStage,
    TemplateFilterStage,
    TimeWindowStage,
    build_resolution_pipeline,
)

__all__ = [
    "EventLimitStage",
    "EventProcessor",
    "ExpansionStage",
    "FetchStage",
    "OverrideResolutionStage",
    "ResolutionContext",
    "ResolutionPipeline",
    "ResolutionResult",
    "StageResult",
    "TemplateFilterStage",
    "TimeWindowStage",
    "build_resolution_pipeline",
]
