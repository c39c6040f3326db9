"""Session-level facade: one pipeline, one registry, one cache, one history."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from pydantic import BaseModel

from .config import AppSettings
from .observability import PipelineObserver
from .research.cache import ResultCache
from .research.history import ResearchHistory
from .research.models import ResearchContext
from .research.pipeline import ResearchPipeline
from .research.registry import CapabilityRegistry
from .research.synthesis import Synthesizer

logger = logging.getLogger(__name__)


class AgentStatus(BaseModel):
    session_id: str
    capabilities: list[str]
    cache_size: int
    history_count: int
    status: str = "ready"


class ResearchAgent:
    """Research agent bound to one immutable settings object per pipeline."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        synthesizer: Optional[Synthesizer] = None,
        observers: Iterable[PipelineObserver] = (),
    ):
        if settings is None:
            from .config import settings as default_settings

            settings = default_settings
        self._synthesizer = synthesizer
        self._observers = list(observers)
        self.history = ResearchHistory()
        self.pipeline = self._build_pipeline(settings)

    def _build_pipeline(
        self,
        settings: AppSettings,
        session_id: Optional[str] = None,
        registry: Optional[CapabilityRegistry] = None,
        cache: Optional[ResultCache] = None,
    ) -> ResearchPipeline:
        if cache is None and settings.storage.cache_enabled:
            cache = ResultCache(settings.get_cache_dir(), default_ttl=settings.storage.cache_ttl)
        return ResearchPipeline(
            settings,
            registry=registry,
            cache=cache,
            synthesizer=self._synthesizer,
            observers=self._observers,
            history=self.history,
            session_id=session_id,
        )

    @property
    def settings(self) -> AppSettings:
        return self.pipeline.settings

    @property
    def session_id(self) -> str:
        return self.pipeline.session_id

    async def research(self, topic: str, options: Optional[Mapping[str, Any]] = None) -> ResearchContext:
        return await self.pipeline.research(topic, options)

    def update_config(self, overrides: Mapping[str, Any]) -> AppSettings:
        """Apply overrides, re-validate, and rebuild the pipeline with the new settings.

        The session id and history are kept, as are directly registered capabilities.
        The cache (memory tier included) is kept while its directory and TTL are unchanged.

        Raises:
            pydantic.ValidationError: If an overridden value is invalid; the current
                settings stay in effect.
        """
        current = self.pipeline
        new_settings = current.settings.with_overrides(overrides)

        cache = None
        old_storage, new_storage = current.settings.storage, new_settings.storage
        if new_storage.cache_enabled and (old_storage.cache_dir, old_storage.cache_ttl) == (new_storage.cache_dir, new_storage.cache_ttl):
            cache = current.cache

        self.pipeline = self._build_pipeline(
            new_settings,
            session_id=current.session_id,
            registry=current.registry.rebind(new_settings),
            cache=cache,
        )
        logger.info(f"Configuration updated: {sorted(overrides)}")
        return new_settings

    def status(self) -> AgentStatus:
        cache = self.pipeline.cache
        return AgentStatus(
            session_id=self.session_id,
            capabilities=self.pipeline.registry.names,
            cache_size=cache.size if cache is not None else 0,
            history_count=len(self.history),
        )
