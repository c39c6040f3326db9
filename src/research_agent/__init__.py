"""Research agent: search, score, cross-verify and synthesize research on a topic."""

from .agent import AgentStatus, ResearchAgent
from .config import AppSettings, settings
from .exceptions import (
    InvalidTopicError,
    LLMProviderError,
    LLMTransportError,
    MissingCredentialError,
    ResearchAgentError,
    UnsupportedProviderError,
)
from .research import ResearchContext, ResearchPipeline

__all__ = [
    "AgentStatus",
    "AppSettings",
    "InvalidTopicError",
    "LLMProviderError",
    "LLMTransportError",
    "MissingCredentialError",
    "ResearchAgent",
    "ResearchAgentError",
    "ResearchContext",
    "ResearchPipeline",
    "UnsupportedProviderError",
    "settings",
]
