"""Tests for the resolution pipeline and its stages."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from calendarful.domain.pipeline import ResolutionContext, ResolutionPipeline, StageResult
from calendarful.domain.pipeline_stages import (
    EventLimitStage,
    ExpansionStage,
    FetchStage,
    OverrideResolutionStage,
    TemplateFilterStage,
    TimeWindowStage,
    build_resolution_pipeline,
)
from calendarful.exceptions import MixedEventIdError
from calendarful.models import Event
from calendarful.recurrence import RecurrenceRegistry, WeeklyRecurrence
from calendarful.sources import InMemoryEventSource

pytestmark = pytest.mark.unit


def create_test_event(event_id, start, end=None, **kwargs) -> Event:
    """Create a test event for pipeline testing."""
    return Event(id=event_id, start_date=start, end_date=end or start, **kwargs)


def create_context(events=None, **kwargs) -> ResolutionContext:
    kwargs.setdefault("from_date", datetime(2025, 1, 10))
    kwargs.setdefault("to_date", datetime(2025, 1, 20))
    return ResolutionContext(events=list(events or []), **kwargs)


class TestResolutionContext:
    """Test ResolutionContext dataclass."""

    def test_create_empty_context(self):
        context = ResolutionContext()
        assert context.events == []
        assert context.extra_filters == {}

    def test_filters_include_query_and_extra_filters(self):
        context = create_context(limit=5, extra_filters={"owner": "alice"})
        assert context.filters() == {
            "from": datetime(2025, 1, 10),
            "to": datetime(2025, 1, 20),
            "limit": 5,
            "owner": "alice",
        }

    def test_extra_filters_cannot_override_query(self):
        context = create_context(extra_filters={"from": "bogus"})
        assert context.filters()["from"] == datetime(2025, 1, 10)


class TestStageResult:
    """Test StageResult dataclass."""

    def test_events_filtered(self):
        assert StageResult(events_in=5, events_out=3).events_filtered == 2
        assert StageResult(events_in=2, events_out=4).events_filtered == 0


class TestFetchStage:
    """Test fetch stage."""

    def test_fetch_passes_filters_to_source(self):
        source = MagicMock()
        source.get.return_value = [create_test_event(1, datetime(2025, 1, 12))]
        context = create_context(source=source, limit=3, extra_filters={"owner": "alice"})

        result = FetchStage().process(context)

        source.get.assert_called_once_with(
            {"from": datetime(2025, 1, 10), "to": datetime(2025, 1, 20), "limit": 3, "owner": "alice"}
        )
        assert result.events_out == 1
        assert [e.id for e in context.events] == [1]

    def test_source_errors_propagate_unchanged(self):
        source = MagicMock()
        source.get.side_effect = ConnectionError("database unreachable")

        with pytest.raises(ConnectionError, match="database unreachable"):
            FetchStage().process(create_context(source=source))

    def test_missing_source(self):
        with pytest.raises(ValueError):
            FetchStage().process(create_context())

    def test_mixed_id_types_rejected(self):
        source = InMemoryEventSource(
            [
                create_test_event(1, datetime(2025, 1, 12)),
                create_test_event("b", datetime(2025, 1, 12)),
            ]
        )

        with pytest.raises(MixedEventIdError, match="int, str"):
            FetchStage().process(create_context(source=source))

    def test_uniform_string_ids_accepted(self):
        source = InMemoryEventSource(
            [
                create_test_event("a", datetime(2025, 1, 12)),
                create_test_event("b", datetime(2025, 1, 12)),
            ]
        )

        result = FetchStage().process(create_context(source=source))

        assert result.events_out == 2


class TestExpansionStage:
    """Test expansion stage."""

    def test_adds_occurrences_and_keeps_templates(self):
        template = create_test_event(2, datetime(2025, 1, 1), recurrence_type="weekly")
        context = create_context([template])

        result = ExpansionStage(RecurrenceRegistry([WeeklyRecurrence()])).process(context)

        assert template in context.events
        generated = [e for e in context.events if e.is_generated]
        assert [e.start_date for e in generated] == [datetime(2025, 1, 15)]
        assert result.metadata["generated_occurrences"] == 1

    def test_unknown_label_is_a_no_op(self):
        template = create_test_event(2, datetime(2025, 1, 1), recurrence_type="yearly")
        context = create_context([template])

        result = ExpansionStage(RecurrenceRegistry([WeeklyRecurrence()])).process(context)

        assert context.events == [template]
        assert result.events_out == 1

    def test_every_strategy_sees_candidates(self):
        template = create_test_event(2, datetime(2025, 1, 1), recurrence_type="weekly")
        strategy = MagicMock()
        strategy.label.return_value = "custom"
        strategy.expand.return_value = []
        registry = RecurrenceRegistry([strategy])

        ExpansionStage(registry).process(create_context([template], limit=4))

        strategy.expand.assert_called_once_with(
            (template,), datetime(2025, 1, 10), datetime(2025, 1, 20), 4
        )


class TestTemplateFilterStage:
    """Test template filter stage."""

    def test_templates_removed_even_when_in_range(self):
        template = create_test_event(2, datetime(2025, 1, 15), recurrence_type="weekly")
        singular = create_test_event(1, datetime(2025, 1, 15))
        context = create_context([template, singular])

        result = TemplateFilterStage().process(context)

        assert context.events == [singular]
        assert result.events_filtered == 1


class TestOverrideResolutionStage:
    """Test override resolution stage."""

    def setup_method(self):
        self.template = create_test_event(2, datetime(2025, 1, 1), recurrence_type="weekly")
        self.occurrence = Event.occurrence_of(self.template, datetime(2025, 1, 15))

    def test_override_rescheduled_later_wins(self):
        override = create_test_event(
            3, datetime(2025, 1, 16), parent_id=2, occurrence_date=datetime(2025, 1, 15)
        )
        context = create_context([override, self.occurrence])

        result = OverrideResolutionStage().process(context)

        assert context.events == [override]
        assert result.metadata["replaced_occurrences"] == 1

    def test_override_rescheduled_earlier_still_wins(self):
        override = create_test_event(
            3, datetime(2025, 1, 12), parent_id=2, occurrence_date=datetime(2025, 1, 15)
        )
        context = create_context([self.occurrence, override])

        OverrideResolutionStage().process(context)

        assert context.events == [override]

    def test_later_override_of_same_occurrence_wins(self):
        first = create_test_event(
            3, datetime(2025, 1, 16), parent_id=2, occurrence_date=datetime(2025, 1, 15)
        )
        second = create_test_event(
            4, datetime(2025, 1, 17), parent_id=2, occurrence_date=datetime(2025, 1, 15)
        )
        context = create_context([second, first, self.occurrence])

        OverrideResolutionStage().process(context)

        assert context.events == [second]

    def test_distinct_keys_kept_and_sorted(self):
        a = create_test_event(5, datetime(2025, 1, 12))
        b = create_test_event(4, datetime(2025, 1, 12))
        c = create_test_event(1, datetime(2025, 1, 11))
        context = create_context([a, b, c])

        OverrideResolutionStage().process(context)

        assert [e.id for e in context.events] == [1, 4, 5]


class TestTimeWindowStage:
    """Test time window stage."""

    def test_keeps_intersecting_events(self):
        inside = create_test_event(1, datetime(2025, 1, 12))
        spanning = create_test_event(2, datetime(2025, 1, 1), datetime(2025, 1, 10))
        before = create_test_event(3, datetime(2025, 1, 1), datetime(2025, 1, 9))
        after = create_test_event(4, datetime(2025, 1, 21))
        context = create_context([inside, spanning, before, after])

        result = TimeWindowStage().process(context)

        assert [e.id for e in context.events] == [1, 2]
        assert result.events_filtered == 2


class TestEventLimitStage:
    """Test event limit stage."""

    def test_truncates_to_limit(self):
        events = [create_test_event(i, datetime(2025, 1, 10 + i)) for i in range(5)]
        context = create_context(events, limit=2)

        EventLimitStage().process(context)

        assert [e.id for e in context.events] == [0, 1]

    def test_no_limit_keeps_all(self):
        events = [create_test_event(i, datetime(2025, 1, 10 + i)) for i in range(5)]
        context = create_context(events)

        EventLimitStage().process(context)

        assert len(context.events) == 5

    def test_zero_limit(self):
        context = create_context([create_test_event(1, datetime(2025, 1, 12))], limit=0)
        EventLimitStage().process(context)
        assert context.events == []


class TestResolutionPipeline:
    """Test ResolutionPipeline orchestration."""

    def test_stage_order(self):
        pipeline = build_resolution_pipeline(RecurrenceRegistry())
        assert [stage.name for stage in pipeline.stages] == [
            "Fetch",
            "Expansion",
            "TemplateFilter",
            "OverrideResolution",
            "TimeWindow",
            "EventLimit",
        ]

    def test_process_collects_stage_results(self):
        source = InMemoryEventSource([create_test_event(1, datetime(2025, 1, 12))])
        pipeline = build_resolution_pipeline(RecurrenceRegistry())

        result = pipeline.process(create_context(source=source))

        assert [e.id for e in result.events] == [1]
        assert len(result.stages) == 6

    def test_stage_exception_reraised(self):
        failing = MagicMock()
        failing.name = "Failing"
        failing.process.side_effect = RuntimeError("boom")
        pipeline = ResolutionPipeline().add_stage(failing)

        with pytest.raises(RuntimeError, match="boom"):
            pipeline.process(create_context())

    def test_clear_stages(self):
        pipeline = build_resolution_pipeline(RecurrenceRegistry())
        pipeline.clear_stages()
        assert pipeline.stages == []
        assert repr(pipeline) == "ResolutionPipeline(stages=[])"
