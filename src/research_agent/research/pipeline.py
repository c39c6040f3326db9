"""Research pipeline: search, extraction, analysis, verification, synthesis, caching.

One `research()` call walks the stages in order:

    started -> searched -> analyzed -> verified (optional) -> synthesized -> cached -> completed

Each stage returns an updated copy of the frozen `ResearchContext`. Only an
invalid topic or an error in the control flow itself fails the call (observers
see `failed` and the exception propagates). Capability errors degrade to
neutral contributions, synthesis errors to placeholder text, and storage errors
are logged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from ..exceptions import InvalidTopicError
from ..observability import (
    PipelineEvent,
    PipelineObserver,
    PipelineStage,
    ResearchRecord,
    bind_research_context,
    clear_research_context,
    get_research_logger,
)
from ..utils import save_research_result
from .analysis import neutral_scores
from .cache import ResultCache, cache_key, canonical_options
from .citation import fallback_citations
from .history import ResearchHistory
from .models import AnalysisScores, AnalyzedResult, Citation, ExtractedContent, Report, ResearchContext, Source
from .prompts import get_analysis_prompt, get_report_prompt
from .registry import CapabilityKind, CapabilityRegistry
from .search import fallback_sources, select_sources
from .synthesis import LLMSynthesizer, Synthesizer, degraded_analysis, degraded_report, parse_synthesis
from .verification import unverified

if TYPE_CHECKING:
    from ..config import AppSettings

logger = logging.getLogger(__name__)
log = get_research_logger(__name__)


def extract_content(source: Source) -> ExtractedContent | None:
    """Extract text for a source from its snippet. Returns None when there is nothing to extract."""
    text = source.snippet.strip()
    if not text:
        return None
    return ExtractedContent(title=source.title or "Untitled", content=text, url=source.url)


def normalize_options(options: Mapping[str, Any] | None, defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Merge per-call options over the customization defaults. A null option keeps the default."""
    merged = dict(defaults)
    merged.update({k: v for k, v in (options or {}).items() if v is not None})
    return canonical_options(merged)


def research_cache_key(topic: str, options: Mapping[str, Any], settings: "AppSettings") -> str:
    """Cache key over the topic, the normalized options and the settings that shape the result."""
    research = settings.research
    shaping = {
        "max_sources": research.max_sources,
        "verification_enabled": research.verification_enabled,
        "result_quality_threshold": research.result_quality_threshold,
        "citation_style": research.citation_style,
    }
    return cache_key(topic, {**options, "_pipeline": shaping})


class ResearchPipeline:
    """Orchestrates one research call at a time per `research()` invocation.

    Concurrent calls are independent; they share only the cache and the
    capability registry.
    """

    def __init__(
        self,
        settings: "AppSettings",
        *,
        registry: CapabilityRegistry | None = None,
        cache: ResultCache | None = None,
        synthesizer: Synthesizer | None = None,
        observers: Iterable[PipelineObserver] = (),
        history: ResearchHistory | None = None,
        session_id: str | None = None,
    ):
        self.settings = settings
        self.session_id = session_id or str(uuid4())
        self.observers: list[PipelineObserver] = list(observers)
        self.history = history if history is not None else ResearchHistory()

        if registry is None:
            registry = CapabilityRegistry(settings)
            registry.load_defaults()
        self.registry = registry

        if cache is None and settings.storage.cache_enabled:
            cache = ResultCache(settings.get_cache_dir(), default_ttl=settings.storage.cache_ttl)
        self.cache = cache

        self._synthesizer = synthesizer

    # ------------------------------------------------------------------ #
    #  Entry point                                                        #
    # ------------------------------------------------------------------ #

    async def research(self, topic: str, options: Mapping[str, Any] | None = None) -> ResearchContext:
        """Run the full pipeline for `topic`.

        Raises:
            InvalidTopicError: If `topic` is not a non-empty string. Raised before
                the cache or any capability is touched.
        """
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidTopicError("Research topic must be a non-empty string")

        normalized = normalize_options(options, self.settings.customization.model_dump())
        key = research_cache_key(topic, normalized, self.settings)
        record = ResearchRecord(id=str(uuid4()), topic=topic, cache_key=key, stage=PipelineStage.STARTED)
        self.history.add(record)

        bind_research_context(self.session_id, topic)
        self._emit("research:start", topic, PipelineStage.STARTED, options=normalized)
        log.info("research_started", cache_key=key[:12])

        try:
            cached = await self._read_cache(key)
            if cached is not None:
                self._emit("research:cache-hit", topic, PipelineStage.COMPLETED, cache_key=key)
                log.info("research_cache_hit", cache_key=key[:12])
                self._finish(record, cached, cache_hit=True)
                return cached

            context = ResearchContext(topic=topic, options=normalized)

            context = await self._search(context)
            self._transition(context, PipelineStage.SEARCHED, sources=len(context.sources))

            context = await self._analyze(context)
            self._transition(context, PipelineStage.ANALYZED, results=len(context.results))

            if self.settings.research.verification_enabled:
                context = await self._verify(context)
                self._transition(context, PipelineStage.VERIFIED, confidence=context.verification.confidence)

            context = await self._synthesize(context)
            self._transition(context, PipelineStage.SYNTHESIZED, degraded=context.report.degraded)

            await self._store(key, context)
            self._transition(context, PipelineStage.CACHED)

            self._finish(record, context)
            self._emit("research:complete", topic, PipelineStage.COMPLETED, sources=len(context.sources))
            log.info("research_completed", sources=len(context.sources), results=len(context.results))
            return context

        except Exception as e:
            self.history.update(
                record.model_copy(update={"stage": PipelineStage.FAILED, "error": str(e), "completed_at": datetime.now(UTC)})
            )
            self._emit("research:error", topic, PipelineStage.FAILED, error=str(e))
            log.error("research_failed", error=str(e))
            raise
        finally:
            clear_research_context()

    # ------------------------------------------------------------------ #
    #  Stages                                                             #
    # ------------------------------------------------------------------ #

    async def _search(self, context: ResearchContext) -> ResearchContext:
        search = self.registry.get(CapabilityKind.SEARCH)
        if search is None:
            logger.info("No search capability registered, using fallback source")
            raw = fallback_sources(context.topic)
        else:
            try:
                found = await asyncio.wait_for(
                    search.search(context.topic, context.options),
                    timeout=self.settings.research.search_timeout,
                )
                raw = [s if isinstance(s, Source) else Source.model_validate(s) for s in found]
            except TimeoutError:
                logger.error(f"Search timed out after {self.settings.research.search_timeout}s")
                raw = []
            except Exception as e:
                logger.error(f"Search failed: {e}")
                raw = []

        sources = select_sources(raw, self.settings.research.result_quality_threshold)
        logger.info(f"Search returned {len(raw)} sources, retained {len(sources)}")
        return context.model_copy(update={"sources": sources})

    async def _analyze(self, context: ResearchContext) -> ResearchContext:
        selected = context.sources[: self.settings.research.max_sources]
        semaphore = asyncio.Semaphore(self.settings.performance.concurrent_requests)

        async def process(source: Source) -> AnalyzedResult | None:
            async with semaphore:
                content = extract_content(source)
                if content is None:
                    logger.debug(f"No content extracted from {source.url}, skipping")
                    return None
                scores = await self._score(content, context.topic)
                return AnalyzedResult(source=source, content=content, analysis=scores)

        # gather keeps input order, so results stay in rank order
        outcomes = await asyncio.gather(*(process(source) for source in selected))
        results = [r for r in outcomes if r is not None]
        return context.model_copy(update={"results": results})

    async def _score(self, content: ExtractedContent, topic: str) -> AnalysisScores:
        analyzer = self.registry.get(CapabilityKind.ANALYSIS)
        if analyzer is None:
            return neutral_scores(topic)

        try:
            scores = await analyzer.analyze(content, topic)
            return scores if isinstance(scores, AnalysisScores) else AnalysisScores.model_validate(scores)
        except Exception as e:
            logger.warning(f"Analysis failed for {content.url}: {e}")
            return neutral_scores(topic)

    async def _verify(self, context: ResearchContext) -> ResearchContext:
        verifier = self.registry.get(CapabilityKind.VERIFICATION)
        if verifier is None:
            logger.info("No verification capability registered")
            return context.model_copy(update={"verification": unverified()})

        try:
            verification = await verifier.verify(context)
        except Exception as e:
            logger.error(f"Verification failed: {e}")
            verification = unverified()
        return context.model_copy(update={"verification": verification})

    async def _synthesize(self, context: ResearchContext) -> ResearchContext:
        fmt = context.options.get("format", self.settings.customization.format)
        citations = self._cite(context)

        try:
            text = await self._generate(get_analysis_prompt(context))
            analysis = parse_synthesis(text)
        except Exception as e:
            logger.error(f"Analysis generation failed: {e}")
            analysis = degraded_analysis()

        try:
            text = await self._generate(get_report_prompt(context, analysis))
            report = Report(content=text, citations=citations, format=fmt)
        except Exception as e:
            logger.error(f"Report generation failed: {e}")
            report = degraded_report(fmt, citations)

        return context.model_copy(update={"analysis": analysis, "report": report})

    async def _generate(self, prompt: str) -> str:
        llm = self.settings.llm
        synthesizer = self._resolve_synthesizer()
        return await synthesizer.generate(prompt, temperature=llm.temperature, max_tokens=llm.max_tokens)

    def _resolve_synthesizer(self) -> Synthesizer:
        if self._synthesizer is None:
            from ..providers import get_llm_from_settings

            self._synthesizer = LLMSynthesizer(get_llm_from_settings(self.settings.llm), timeout=self.settings.llm.timeout)
        return self._synthesizer

    def _cite(self, context: ResearchContext) -> list[Citation]:
        citer = self.registry.get(CapabilityKind.CITATION)
        if citer is None:
            return fallback_citations(context.results)

        style = context.options.get("citation_style") or self.settings.research.citation_style
        try:
            return list(citer.cite(context.results, style))
        except Exception as e:
            logger.warning(f"Citation generation failed: {e}")
            return fallback_citations(context.results)

    # ------------------------------------------------------------------ #
    #  Cache and persistence (best-effort)                                #
    # ------------------------------------------------------------------ #

    async def _read_cache(self, key: str) -> ResearchContext | None:
        if self.cache is None or not self.settings.storage.cache_enabled:
            return None

        try:
            payload = await self.cache.get_async(key)
        except Exception as e:
            logger.warning(f"Cache lookup failed: {e}")
            return None
        if payload is None:
            return None

        try:
            return ResearchContext.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cached result {key[:12]}: {e}")
            return None

    async def _store(self, key: str, context: ResearchContext) -> None:
        if self.cache is not None and self.settings.storage.cache_enabled:
            try:
                await self.cache.put_async(key, context.model_dump(mode="json"), self.settings.storage.cache_ttl)
            except Exception as e:
                logger.error(f"Failed to write cache entry: {e}")

        if self.settings.storage.persist_results:
            try:
                save_research_result(context, self.session_id, self.settings.get_results_dir())
            except Exception as e:
                logger.error(f"Failed to persist results: {e}")

    # ------------------------------------------------------------------ #
    #  Lifecycle notifications                                            #
    # ------------------------------------------------------------------ #

    def _transition(self, context: ResearchContext, stage: PipelineStage, **data: Any) -> None:
        self._emit("research:stage", context.topic, stage, **data)
        log.debug("research_stage", stage=stage.value, **data)

    def _emit(self, name: str, topic: str, stage: PipelineStage | None, **data: Any) -> None:
        if not self.observers:
            return
        event = PipelineEvent(name=name, session_id=self.session_id, topic=topic, stage=stage, data=data)
        for observer in self.observers:
            try:
                observer(event)
            except Exception as e:
                logger.warning(f"Pipeline observer {observer!r} failed on {name}: {e}")

    def _finish(self, record: ResearchRecord, context: ResearchContext, *, cache_hit: bool = False) -> None:
        confidence = context.verification.confidence if context.verification is not None else None
        self.history.update(
            record.model_copy(
                update={
                    "stage": PipelineStage.COMPLETED,
                    "completed_at": datetime.now(UTC),
                    "source_count": len(context.sources),
                    "confidence": confidence,
                    "cache_hit": cache_hit,
                }
            )
        )


def summarize_sources(sources: Sequence[Source]) -> list[dict[str, Any]]:
    """Compact source listing for CLI output."""
    return [{"title": s.title, "url": s.url, "engine": s.origin_engine, "quality": s.quality_score} for s in sources]
