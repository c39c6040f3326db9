"""Capability registry: one swappable implementation per pipeline capability kind.

Resolution order for `load(name)`:
1. `<plugins.directory>/<name>.py` exposing `create_capability(settings)`
2. the built-in implementation registered under the same name
3. None (logged); callers apply their documented fallback
"""

from __future__ import annotations

import importlib.util
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ..exceptions import PluginLoadError
from .analysis import HeuristicAnalyzer
from .citation import CitationFormatter
from .models import AnalysisScores, AnalyzedResult, Citation, ExtractedContent, ResearchContext, Source, Verification
from .search import SeedSearch
from .verification import VerificationEngine

if TYPE_CHECKING:
    from ..config import AppSettings

logger = logging.getLogger(__name__)

PLUGIN_FACTORY_NAME = "create_capability"


class CapabilityKind(str, Enum):
    SEARCH = "search"
    ANALYSIS = "analysis"
    VERIFICATION = "verification"
    CITATION = "citation"


@runtime_checkable
class SearchCapability(Protocol):
    async def search(self, topic: str, options: Mapping[str, Any]) -> list[Source]: ...


@runtime_checkable
class AnalysisCapability(Protocol):
    async def analyze(self, content: ExtractedContent, topic: str) -> AnalysisScores: ...


@runtime_checkable
class VerificationCapability(Protocol):
    async def verify(self, context: ResearchContext) -> Verification: ...


@runtime_checkable
class CitationCapability(Protocol):
    def cite(self, results: Sequence[AnalyzedResult], style: str) -> list[Citation]: ...


CAPABILITY_PROTOCOLS: dict[CapabilityKind, type] = {
    CapabilityKind.SEARCH: SearchCapability,
    CapabilityKind.ANALYSIS: AnalysisCapability,
    CapabilityKind.VERIFICATION: VerificationCapability,
    CapabilityKind.CITATION: CitationCapability,
}

BUILTIN_FACTORIES: dict[CapabilityKind, Callable[["AppSettings"], object]] = {
    CapabilityKind.SEARCH: lambda s: SeedSearch(s.research.search_engines),
    CapabilityKind.ANALYSIS: lambda s: HeuristicAnalyzer(),
    CapabilityKind.VERIFICATION: lambda s: VerificationEngine(),
    CapabilityKind.CITATION: lambda s: CitationFormatter(),
}


def resolve_kind(name: str | CapabilityKind) -> CapabilityKind | None:
    try:
        return CapabilityKind(name)
    except ValueError:
        return None


class CapabilityRegistry:
    """Holds at most one capability instance per kind for the lifetime of a session."""

    def __init__(self, settings: "AppSettings", plugin_directory: str | Path | None = None):
        self.settings = settings
        directory = plugin_directory if plugin_directory is not None else settings.plugins.directory
        self.plugin_directory = Path(directory).expanduser() if directory else None
        self._capabilities: dict[CapabilityKind, object] = {}
        self._loaded: set[CapabilityKind] = set()
        self._lock = threading.RLock()

    @property
    def names(self) -> list[str]:
        return [kind.value for kind in self._capabilities]

    def get(self, kind: CapabilityKind) -> Any | None:
        return self._capabilities.get(kind)

    def register(self, kind: CapabilityKind | str, capability: object) -> None:
        """Register (or replace) the implementation for `kind`.

        Raises:
            PluginLoadError: If the kind is unknown or the object does not satisfy its contract.
        """
        resolved = resolve_kind(kind)
        if resolved is None:
            raise PluginLoadError(f"Unknown capability kind: {kind}")
        if not isinstance(capability, CAPABILITY_PROTOCOLS[resolved]):
            raise PluginLoadError(f"{type(capability).__name__} does not implement the {resolved.value} capability")

        with self._lock:
            self._capabilities[resolved] = capability
            self._loaded.discard(resolved)
        logger.debug(f"Registered {resolved.value} capability: {type(capability).__name__}")

    def unregister(self, kind: CapabilityKind) -> bool:
        with self._lock:
            self._loaded.discard(kind)
            return self._capabilities.pop(kind, None) is not None

    def load(self, name: str) -> Any | None:
        """Load the capability called `name`, preferring a user plugin over the built-in."""
        kind = resolve_kind(name)
        if kind is None:
            logger.warning(f"Unknown capability: {name}")
            return None

        with self._lock:
            existing = self._capabilities.get(kind)
            if existing is not None:
                return existing
            capability = self._create(kind)
            if capability is None:
                return None

            try:
                self.register(kind, capability)
            except PluginLoadError as e:
                logger.error(str(e))
                return None
            self._loaded.add(kind)

        logger.info(f"Loaded capability: {kind.value} ({type(capability).__name__})")
        return capability

    def _create(self, kind: CapabilityKind) -> object | None:
        capability = None
        try:
            capability = self._load_user_plugin(kind)
        except PluginLoadError as e:
            logger.warning(f"{e}; falling back to built-in {kind.value}")

        if capability is None:
            try:
                capability = BUILTIN_FACTORIES[kind](self.settings)
            except Exception as e:
                logger.error(f"Capability {kind.value} not found in plugin or built-in implementations: {e}")
                return None
        return capability

    def load_defaults(self) -> list[str]:
        """Load every capability named in `plugins.default_plugins` when plugins are enabled."""
        if not self.settings.plugins.enabled:
            return []
        return [name for name in self.settings.plugins.default_plugins if self.load(name) is not None]

    def rebind(self, settings: "AppSettings") -> "CapabilityRegistry":
        """Registry for new settings.

        Capabilities registered directly are carried over as-is; loaded ones are
        loaded again so they pick up the new settings.
        """
        registry = CapabilityRegistry(settings)
        with self._lock:
            registered = {k: c for k, c in self._capabilities.items() if k not in self._loaded}
        for kind, capability in registered.items():
            registry.register(kind, capability)
        registry.load_defaults()
        return registry

    def _load_user_plugin(self, kind: CapabilityKind) -> object | None:
        if self.plugin_directory is None:
            return None

        path = self.plugin_directory / f"{kind.value}.py"
        if not path.is_file():
            return None

        try:
            module_spec = importlib.util.spec_from_file_location(f"research_agent_plugin_{kind.value}", path)
            if module_spec is None or module_spec.loader is None:
                raise PluginLoadError(f"Cannot create module spec for plugin {path}")

            module = importlib.util.module_from_spec(module_spec)
            module_spec.loader.exec_module(module)

            factory = getattr(module, PLUGIN_FACTORY_NAME, None)
            if not callable(factory):
                raise PluginLoadError(f"Plugin {path} does not define {PLUGIN_FACTORY_NAME}(settings)")

            capability = factory(self.settings)
        except PluginLoadError:
            raise
        except Exception as e:
            raise PluginLoadError(f"Failed to load plugin {path}: {e}") from e

        if not isinstance(capability, CAPABILITY_PROTOCOLS[kind]):
            raise PluginLoadError(f"Plugin {path} does not implement the {kind.value} capability")
        return capability
