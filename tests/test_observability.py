"""Tests for observability models, structured logging context and research history."""

from datetime import UTC, datetime, timedelta

import structlog

from research_agent.observability import (
    PipelineEvent,
    PipelineStage,
    ResearchRecord,
    bind_research_context,
    clear_research_context,
    get_research_logger,
)
from research_agent.research.history import ResearchHistory


def record(record_id: str, stage: PipelineStage = PipelineStage.STARTED) -> ResearchRecord:
    return ResearchRecord(id=record_id, topic="t", cache_key="k", stage=stage)


class TestResearchRecord:
    def test_default_values(self):
        r = record("r1")
        assert r.completed_at is None
        assert r.source_count == 0
        assert r.confidence is None
        assert r.cache_hit is False
        assert r.duration_seconds is None
        assert not r.is_terminal

    def test_duration_calculation(self):
        start = datetime.now(UTC) - timedelta(seconds=30)
        r = record("r1").model_copy(update={"created_at": start, "completed_at": start + timedelta(seconds=30)})
        assert r.duration_seconds == 30

    def test_terminal_stages(self):
        assert record("a", PipelineStage.COMPLETED).is_terminal
        assert record("b", PipelineStage.FAILED).is_terminal
        assert not record("c", PipelineStage.CACHED).is_terminal


class TestPipelineEvent:
    def test_defaults(self):
        event = PipelineEvent(name="research:start", session_id="s", topic="t")
        assert event.stage is None
        assert event.data == {}
        assert event.timestamp.tzinfo is not None

    def test_stage_values(self):
        assert [s.value for s in PipelineStage] == [
            "started",
            "searched",
            "analyzed",
            "verified",
            "synthesized",
            "cached",
            "completed",
            "failed",
        ]


class TestResearchContextBinding:
    def test_bind_and_clear(self):
        bind_research_context("session-1", "fusion")

        assert structlog.contextvars.get_contextvars() == {"session_id": "session-1", "topic": "fusion"}

        clear_research_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_logger_is_available(self):
        assert get_research_logger() is not None


class TestResearchHistory:
    def test_newest_first(self):
        history = ResearchHistory()
        history.add(record("a"))
        history.add(record("b"))

        assert [r.id for r in history.list()] == ["b", "a"]
        assert len(history) == 2

    def test_bounded(self):
        history = ResearchHistory(max_entries=2)
        for record_id in ("a", "b", "c"):
            history.add(record(record_id))

        assert [r.id for r in history.list()] == ["c", "b"]
        assert history.get("a") is None

    def test_update_keeps_position(self):
        history = ResearchHistory()
        history.add(record("a"))
        history.add(record("b"))

        history.update(record("a", PipelineStage.COMPLETED))

        assert [r.id for r in history.list()] == ["b", "a"]
        assert history.get("a").stage == PipelineStage.COMPLETED

    def test_update_unknown_is_ignored(self):
        history = ResearchHistory()
        history.update(record("missing"))
        assert len(history) == 0

    def test_clear(self):
        history = ResearchHistory()
        history.add(record("a"))
        history.clear()
        assert history.list() == []
