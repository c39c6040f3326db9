"""Custom exceptions for the research agent."""


class ResearchAgentError(Exception):
    """Base exception for research agent errors."""

    pass


class InvalidTopicError(ResearchAgentError, ValueError):
    """Raised when a research topic is empty or not a string."""

    pass


class LLMProviderError(ResearchAgentError):
    """Raised when the synthesis LLM cannot be created or queried."""

    pass


class MissingCredentialError(LLMProviderError):
    """Raised when the configured provider needs an API key and none is set."""

    pass


class UnsupportedProviderError(LLMProviderError):
    """Raised when the configured provider is not known."""

    pass


class LLMTransportError(LLMProviderError):
    """Raised when a provider call fails or times out."""

    pass


class PluginLoadError(ResearchAgentError):
    """Raised when a capability plugin file cannot be imported or instantiated."""

    pass


class StorageError(ResearchAgentError):
    """Raised when cache or result files cannot be written."""

    pass
