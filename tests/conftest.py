"""Pytest configuration and fixtures for research-agent tests."""

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from research_agent.config import AppSettings
from research_agent.exceptions import LLMTransportError
from research_agent.research.models import AnalysisScores, ExtractedContent, ResearchContext, Source, Verification
from research_agent.research.registry import CapabilityKind, CapabilityRegistry

SYNTHESIS_TEXT = """## Summary
Sources broadly agree.

## Key Points
- First point
- Second point

## Trends
- Rising interest

## Gaps
- Few longitudinal studies
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: Tests that run the full pipeline with built-in capabilities")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


def make_source(title: str, url: str, quality: float | None = None, relevance: float | None = None, snippet: str | None = None) -> Source:
    return Source(
        title=title,
        url=url,
        snippet=snippet if snippet is not None else f"Findings about {title}.",
        origin_engine="test",
        quality_score=quality,
        relevance_score=relevance,
    )


class FakeSearch:
    """Search capability returning a fixed list and counting calls."""

    def __init__(self, sources: list[Source] | None = None, delay: float = 0.0, error: Exception | None = None):
        self.sources = sources or []
        self.delay = delay
        self.error = error
        self.calls = 0

    async def search(self, topic: str, options: Mapping[str, Any]) -> list[Source]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.sources)


class FakeAnalyzer:
    def __init__(self, scores: AnalysisScores | None = None, error: Exception | None = None):
        self.scores = scores or AnalysisScores(relevance=0.9, quality=0.85, readability=0.6)
        self.error = error
        self.calls = 0

    async def analyze(self, content: ExtractedContent, topic: str) -> AnalysisScores:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.scores


class FakeVerifier:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    async def verify(self, context: ResearchContext) -> Verification:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return Verification(confidence=0.75, summary=f"{len(context.results)} results verified")


class FakeSynthesizer:
    """Synthesizer that records prompts; `vary=True` makes every response unique."""

    def __init__(self, text: str = SYNTHESIS_TEXT, vary: bool = False):
        self.text = text
        self.vary = vary
        self.prompts: list[str] = []
        self.params: list[dict[str, Any]] = []

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        self.prompts.append(prompt)
        self.params.append({"temperature": temperature, "max_tokens": max_tokens})
        if self.vary:
            return f"{self.text}\n(draft {len(self.prompts)})"
        return self.text


class FailingSynthesizer:
    def __init__(self, error: Exception | None = None):
        self.error = error or LLMTransportError("connection refused")
        self.calls = 0

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        self.calls += 1
        raise self.error


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    """Settings isolated to tmp_path, with the shipped defaults otherwise."""
    return AppSettings().with_overrides(
        {
            "storage": {
                "cache_dir": str(tmp_path / "cache"),
                "results_dir": str(tmp_path / "results"),
                "cache_enabled": True,
                "persist_results": True,
            },
            "plugins": {"directory": None, "enabled": True},
            "research": {"verification_enabled": True, "result_quality_threshold": 0.7, "max_sources": 10},
        }
    )


@pytest.fixture
def empty_registry(app_settings) -> CapabilityRegistry:
    return CapabilityRegistry(app_settings)


@pytest.fixture
def three_sources() -> list[Source]:
    return [
        make_source("High quality", "https://a.example.edu/1", quality=0.9, relevance=0.8),
        make_source("Medium quality", "https://b.example.com/2", quality=0.5, relevance=0.8),
        make_source("Low quality", "https://c.example.org/3", quality=0.3, relevance=0.8),
    ]


@pytest.fixture
def fake_search(three_sources) -> FakeSearch:
    return FakeSearch(three_sources)


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def registry_with_search(empty_registry, fake_search) -> CapabilityRegistry:
    empty_registry.register(CapabilityKind.SEARCH, fake_search)
    return empty_registry
