"""Data models for pipeline observability."""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PipelineStage(str, Enum):
    """Per-call pipeline states. Transitions are linear; any state may go to FAILED."""

    STARTED = "started"
    SEARCHED = "searched"
    ANALYZED = "analyzed"
    VERIFIED = "verified"
    SYNTHESIZED = "synthesized"
    CACHED = "cached"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineEvent(BaseModel):
    """Lifecycle notification delivered to observers at stage boundaries."""

    name: str  # research:start, research:stage, research:cache-hit, research:complete, research:error
    session_id: str
    topic: str
    stage: PipelineStage | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = Field(default_factory=dict)


PipelineObserver = Callable[[PipelineEvent], None]


class ResearchRecord(BaseModel):
    """History entry for a research call."""

    id: str
    topic: str
    cache_key: str
    stage: PipelineStage
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    source_count: int = 0
    confidence: float | None = None
    cache_hit: bool = False
    error: str | None = None

    @property
    def duration_seconds(self) -> float | None:
        if not self.completed_at:
            return None
        return (self.completed_at - self.created_at).total_seconds()

    @property
    def is_terminal(self) -> bool:
        return self.stage in (PipelineStage.COMPLETED, PipelineStage.FAILED)
