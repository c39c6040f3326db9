"""Built-in search capability and source selection (dedupe, rank, quality filter)."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote_plus

from .models import Source

logger = logging.getLogger(__name__)

RELEVANCE_WEIGHT = 0.6
QUALITY_WEIGHT = 0.4
MISSING_SCORE = 0.5


@dataclass(frozen=True, slots=True)
class SeedEngine:
    """A search engine adapter that yields one seed result pointing at the engine's query page."""

    name: str
    title: str
    url: str
    snippet: str
    quality: float
    relevance: float

    def search(self, topic: str) -> list[Source]:
        return [
            Source(
                title=self.title.format(topic=topic),
                url=self.url.format(query=quote_plus(topic)),
                snippet=self.snippet.format(topic=topic),
                origin_engine=self.name,
                quality_score=self.quality,
                relevance_score=self.relevance,
            )
        ]


SEED_ENGINES: dict[str, SeedEngine] = {
    "google": SeedEngine(
        name="google",
        title="Google Search Results for: {topic}",
        url="https://www.google.com/search?q={query}",
        snippet="Comprehensive search results for {topic} from Google",
        quality=0.8,
        relevance=0.9,
    ),
    "semantic_scholar": SeedEngine(
        name="semantic_scholar",
        title="Academic Papers on: {topic}",
        url="https://www.semanticscholar.org/search?q={query}",
        snippet="Academic research papers related to {topic}",
        quality=0.9,
        relevance=0.85,
    ),
    "arxiv": SeedEngine(
        name="arxiv",
        title="arXiv Papers on: {topic}",
        url="https://arxiv.org/search/?query={query}",
        snippet="Preprint research papers on {topic} from arXiv",
        quality=0.95,
        relevance=0.8,
    ),
    "pubmed": SeedEngine(
        name="pubmed",
        title="PubMed Articles on: {topic}",
        url="https://pubmed.ncbi.nlm.nih.gov/?term={query}",
        snippet="Medical and life sciences research on {topic}",
        quality=0.92,
        relevance=0.75,
    ),
}


class SeedSearch:
    """Built-in search capability that fans a topic out over the configured engines.

    An engine that raises is logged and skipped; the others still contribute.
    """

    def __init__(self, engines: Iterable[str], registry: Mapping[str, SeedEngine] = SEED_ENGINES):
        self.engines: dict[str, Callable[[str], list[Source]]] = {}
        for name in engines:
            engine = registry.get(name)
            if engine is None:
                logger.warning(f"Unsupported search engine: {name}")
                continue
            self.engines[name] = engine.search

    async def search(self, topic: str, options: Mapping[str, Any] | None = None) -> list[Source]:
        results: list[Source] = []
        for name, engine in self.engines.items():
            try:
                results.extend(engine(topic))
            except Exception as e:
                logger.error(f"Search engine {name} failed: {e}")
        return results


def fallback_sources(topic: str) -> list[Source]:
    """Single stub source used when no search capability is registered."""
    return [
        Source(
            title=f"General search results for: {topic}",
            url="#",
            snippet=f"Search results for {topic}",
            origin_engine="fallback",
            quality_score=0.8,
            relevance_score=0.9,
        )
    ]


def deduplicate_sources(sources: Iterable[Source]) -> list[Source]:
    """Drop any source whose URL or title was already seen. First occurrence wins."""
    seen_urls: set[str] = set()
    seen_titles: set[str] = set()
    unique: list[Source] = []
    for source in sources:
        if source.url in seen_urls or source.title in seen_titles:
            continue
        seen_urls.add(source.url)
        seen_titles.add(source.title)
        unique.append(source)
    return unique


def _score_or_default(value: float | None) -> float:
    return MISSING_SCORE if value is None else value


def rank_score(source: Source) -> float:
    return RELEVANCE_WEIGHT * _score_or_default(source.relevance_score) + QUALITY_WEIGHT * _score_or_default(source.quality_score)


def rank_sources(sources: Iterable[Source]) -> list[Source]:
    """Stable sort, descending by rank score; equal scores keep discovery order."""
    return sorted(sources, key=rank_score, reverse=True)


def filter_by_quality(sources: Iterable[Source], threshold: float) -> list[Source]:
    return [s for s in sources if _score_or_default(s.quality_score) >= threshold]


def select_sources(sources: Sequence[Source], threshold: float) -> list[Source]:
    """Deduplicate, rank and quality-filter raw search output."""
    return filter_by_quality(rank_sources(deduplicate_sources(sources)), threshold)
