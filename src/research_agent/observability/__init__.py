"""Observability: pipeline stages, lifecycle events and structured logging."""

from .logging import bind_research_context, clear_research_context, get_research_logger, setup_structured_logging
from .models import PipelineEvent, PipelineObserver, PipelineStage, ResearchRecord

__all__ = [
    "PipelineEvent",
    "PipelineObserver",
    "PipelineStage",
    "ResearchRecord",
    "bind_research_context",
    "clear_research_context",
    "get_research_logger",
    "setup_structured_logging",
]
