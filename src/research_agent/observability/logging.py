"""Structured logging with per-research-call context using structlog and contextvars."""

import logging

import structlog

_configured = False


def setup_structured_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure structlog with per-call context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Render JSON lines when True, human-readable console output otherwise
    """
    global _configured
    if _configured:
        return

    renderer = structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject research context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
    )

    _configured = True


def bind_research_context(session_id: str, topic: str) -> None:
    """Bind the research call's context for all subsequent logs in this async context."""
    structlog.contextvars.bind_contextvars(session_id=session_id, topic=topic)


def clear_research_context() -> None:
    """Clear research context after the call completes."""
    structlog.contextvars.clear_contextvars()


def get_research_logger(name: str = "research_agent") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the bound research context."""
    return structlog.get_logger(name)

