"""Data models for research calls."""

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

BiasLevel = Literal["low", "medium", "high"]
Sentiment = Literal["positive", "neutral", "negative"]
VerificationStatus = Literal["completed", "not_verified"]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_source_id() -> str:
    return str(uuid4())


class Source(BaseModel):
    """A candidate source produced by a search capability."""

    id: str = Field(default_factory=new_source_id)
    title: str
    url: str
    snippet: str = ""
    origin_engine: str = "unknown"
    quality_score: float | None = None
    relevance_score: float | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class ExtractedContent(BaseModel):
    """Text extracted from a source."""

    title: str
    content: str
    url: str
    extracted_at: datetime = Field(default_factory=utc_now)


class Entities(BaseModel):
    emails: list[str] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)
    people: list[str] = Field(default_factory=list)


class AnalysisScores(BaseModel):
    """Heuristic per-source scores."""

    relevance: float = Field(ge=0.0, le=1.0)
    quality: float = Field(ge=0.0, le=1.0)
    bias: BiasLevel = "low"
    readability: float = Field(default=0.5, ge=0.0, le=1.0)
    sentiment: Sentiment = "neutral"
    entities: Entities = Field(default_factory=Entities)
    topics: list[str] = Field(default_factory=list)


class AnalyzedResult(BaseModel):
    """One retained source with its extracted content and scores."""

    source: Source
    content: ExtractedContent
    analysis: AnalysisScores


class ClaimOccurrence(BaseModel):
    source: str
    url: str
    content: str


class CrossReference(BaseModel):
    """A normalized claim found in at least two distinct sources."""

    claim: str
    sources: list[ClaimOccurrence] = Field(default_factory=list)
    count: int


class FactCheck(BaseModel):
    """A segment flagged as fact-checkable. The engine does not check it."""

    claim: str
    source: str
    url: str
    status: str = "unchecked"
    confidence: float = 0.5
    checked_at: datetime = Field(default_factory=utc_now)


class CredibilityScore(BaseModel):
    source: str
    url: str
    credibility: float = Field(ge=0.0, le=1.0)
    calculated_at: datetime = Field(default_factory=utc_now)


class Verification(BaseModel):
    """Cross-source verification outcome for one research call."""

    model_config = ConfigDict(frozen=True)

    status: VerificationStatus = "completed"
    confidence: float = Field(ge=0.0, le=1.0)
    cross_references: list[CrossReference] = Field(default_factory=list)
    fact_checks: list[FactCheck] = Field(default_factory=list)
    credibility_scores: list[CredibilityScore] = Field(default_factory=list)
    summary: str = ""


class Synthesis(BaseModel):
    """LLM-generated analysis of the gathered results."""

    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    trends: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    quality_assessment: dict[str, Any] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=utc_now)
    degraded: bool = False


class Citation(BaseModel):
    source_title: str
    url: str
    citation: str
    style: str
    generated_at: datetime = Field(default_factory=utc_now)


class Report(BaseModel):
    """Final report text with citations."""

    content: str = ""
    citations: list[Citation] = Field(default_factory=list)
    format: str = "report"
    generated_at: datetime = Field(default_factory=utc_now)
    degraded: bool = False


class ResearchContext(BaseModel):
    """Working state of one research call.

    Frozen: every pipeline stage returns an updated copy via `model_copy`.
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    options: dict[str, Any] = Field(default_factory=dict)
    sources: list[Source] = Field(default_factory=list)
    results: list[AnalyzedResult] = Field(default_factory=list)
    verification: Verification | None = None
    analysis: Synthesis | None = None
    report: Report | None = None


class CacheEntry(BaseModel):
    """A cached payload and its expiry window."""

    key: str
    payload: Any
    created_at: float
    ttl_seconds: float

    def is_valid(self, now: float) -> bool:
        return now - self.created_at < self.ttl_seconds
