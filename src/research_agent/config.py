"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "research-agent"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/research-agent)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    path = base / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_default_results_dir() -> Path:
    """Get the default directory for persisted research results."""
    base = Path("~/Documents").expanduser()
    if not base.exists():
        base = Path.home()

    return base / "research-agent-results"


CONFIG_FILE = get_config_dir() / "config.json"


def load_config_file() -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    if not CONFIG_FILE.exists():
        return {}

    try:
        text = CONFIG_FILE.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        return json.loads(text)
    except Exception:
        return {}


def save_config_file(config_data: dict[str, Any]) -> None:
    """Save settings to the JSON config file."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(config_data, indent=2), encoding="utf-8")


# Standard environment variable names for API keys (industry convention)
# For providers with multiple common env var names, use a list (first match wins)
STANDARD_ENV_VAR_NAMES: dict[str, str | list[str]] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],  # GEMINI_API_KEY takes priority
    "azure_openai": "AZURE_OPENAI_API_KEY",
    "groq": "GROQ_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "cerebras": "CEREBRAS_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

# Providers that don't require an API key
NO_KEY_PROVIDERS = frozenset({"ollama", "bedrock"})

ProviderType = Literal[
    "openai",
    "anthropic",
    "google",
    "azure_openai",
    "groq",
    "deepseek",
    "cerebras",
    "ollama",
    "bedrock",
    "openrouter",
]

CitationStyle = Literal["apa", "mla", "chicago", "harvard"]


class LLMSettings(BaseSettings):
    """LLM provider configuration for the synthesis stage."""

    model_config = SettingsConfigDict(env_prefix="RA_LLM_", frozen=True)

    provider: ProviderType = Field(default="openai")
    model_name: str = Field(default="gpt-4-turbo")
    api_key: Optional[SecretStr] = Field(default=None, description="Generic API key override (highest priority)")
    base_url: Optional[str] = Field(default=None, description="Custom base URL for OpenAI-compatible APIs")

    # Azure OpenAI specific
    azure_endpoint: Optional[str] = Field(default=None, description="Azure OpenAI endpoint URL")
    azure_api_version: Optional[str] = Field(default="2024-02-01", description="Azure OpenAI API version")

    # AWS Bedrock specific
    aws_region: Optional[str] = Field(default=None, description="AWS region for Bedrock")

    # Generation
    temperature: float = Field(default=0.3, ge=0.0, le=2.0, description="Lower for factual research, higher for creative synthesis")
    max_tokens: int = Field(default=4096, gt=0)
    timeout: float = Field(default=30.0, gt=0, description="Timeout per synthesis call in seconds")

    def get_api_key_for_provider(self) -> Optional[str]:
        """Resolve API key with priority: generic > standard > RA-prefixed.

        Priority order:
        1. RA_LLM_API_KEY (generic override, applies to any provider)
        2. <PROVIDER>_API_KEY (standard name, e.g., OPENAI_API_KEY, GEMINI_API_KEY)
        3. RA_LLM_<PROVIDER>_API_KEY (provider-scoped override)

        Returns:
            The resolved API key or None if not found.
        """
        if self.api_key:
            return self.api_key.get_secret_value()

        standard_vars = STANDARD_ENV_VAR_NAMES.get(self.provider)
        if standard_vars:
            if isinstance(standard_vars, str):
                standard_vars = [standard_vars]
            for var_name in standard_vars:
                key = os.environ.get(var_name)
                if key:
                    return key

        return os.environ.get(f"RA_LLM_{self.provider.upper()}_API_KEY")

    def requires_api_key(self) -> bool:
        """Check if the current provider requires an API key."""
        return self.provider not in NO_KEY_PROVIDERS


class ResearchSettings(BaseSettings):
    """Research pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="RA_RESEARCH_", frozen=True)

    max_sources: int = Field(default=10, ge=0, description="Maximum number of ranked sources to extract and analyze")
    verification_enabled: bool = Field(default=True)
    citation_style: CitationStyle = Field(default="apa")
    search_engines: list[str] = Field(default_factory=lambda: ["google", "semantic_scholar", "arxiv", "pubmed"])
    result_quality_threshold: float = Field(default=0.7, ge=0.0, le=1.0, description="Minimum quality score for retained sources")
    search_timeout: float = Field(default=30.0, gt=0, description="Timeout for the search stage in seconds")


class StorageSettings(BaseSettings):
    """Cache and result persistence configuration."""

    model_config = SettingsConfigDict(env_prefix="RA_STORAGE_", frozen=True)

    cache_enabled: bool = Field(default=True)
    cache_ttl: int = Field(default=86400, ge=0, description="Cache TTL in seconds")
    cache_dir: Optional[str] = Field(default=None, description="Directory for durable cache files")
    persist_results: bool = Field(default=True)
    results_dir: Optional[str] = Field(default=None, description="Directory to save research results")


class CustomizationSettings(BaseSettings):
    """Default synthesis options; per-call options are merged over these."""

    model_config = SettingsConfigDict(env_prefix="RA_CUSTOM_", frozen=True)

    persona: str = Field(default="academic-researcher")
    tone: str = Field(default="professional")
    depth: str = Field(default="comprehensive")
    format: str = Field(default="report")
    language: str = Field(default="en", description="ISO 639-1 language code")
    custom_instructions: str = Field(default="")


class PluginSettings(BaseSettings):
    """Capability plugin configuration."""

    model_config = SettingsConfigDict(env_prefix="RA_PLUGINS_", frozen=True)

    enabled: bool = Field(default=True)
    directory: Optional[str] = Field(default=None, description="Directory containing user capability plugins (<name>.py)")
    default_plugins: list[str] = Field(default_factory=lambda: ["search", "analysis", "verification", "citation"])


class PerformanceSettings(BaseSettings):
    """Per-source fan-out configuration."""

    model_config = SettingsConfigDict(env_prefix="RA_PERFORMANCE_", frozen=True)

    concurrent_requests: int = Field(default=3, ge=1)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="RA_LOG_", frozen=True)

    level: str = Field(default="INFO")
    json_format: bool = Field(default=True)


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="RA_", extra="ignore", frozen=True)

    llm: LLMSettings = Field(default_factory=LLMSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    customization: CustomizationSettings = Field(default_factory=CustomizationSettings)
    plugins: PluginSettings = Field(default_factory=PluginSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def with_overrides(self, overrides: Mapping[str, Any]) -> "AppSettings":
        """Return a new validated settings object with `overrides` applied field by field.

        Raises:
            pydantic.ValidationError: If an overridden value is out of range.
        """
        data = _deep_merge(self.model_dump(), overrides)
        return AppSettings(**data)

    def save(self) -> Path:
        """Save current configuration to file (excluding secrets)."""
        data = self.model_dump(mode="json", exclude_none=True)
        if "llm" in data and "api_key" in data["llm"]:
            del data["llm"]["api_key"]
        save_config_file(data)
        return CONFIG_FILE

    def get_cache_dir(self) -> Path:
        """Get the durable cache directory, creating if needed."""
        if self.storage.cache_dir:
            path = Path(self.storage.cache_dir).expanduser()
        else:
            path = get_config_dir() / "cache"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_results_dir(self) -> Path:
        """Get the results directory, creating if needed."""
        if self.storage.results_dir:
            path = Path(self.storage.results_dir).expanduser()
        else:
            path = get_default_results_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path


def _load_settings() -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file()
    # Pydantic will overlay env vars on top
    return AppSettings(**file_data)


settings = _load_settings()
