"""CLI interface for the research agent."""

import asyncio
import json
from typing import Any

import typer

from .config import settings
from .exceptions import InvalidTopicError
from .observability import setup_structured_logging
from .research.cache import ResultCache
from .research.pipeline import summarize_sources

app = typer.Typer(help="Research a topic: search, score, verify and synthesize a cited report")


@app.command()
def research(
    topic: str = typer.Argument(..., help="Topic to research"),
    max_sources: int = typer.Option(None, "--max-sources", "-n", help="Maximum number of sources to analyze"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Skip cross-source verification"),
    persona: str = typer.Option(None, "--persona", help="Persona for synthesis"),
    tone: str = typer.Option(None, "--tone", help="Tone of the report"),
    depth: str = typer.Option(None, "--depth", help="Depth of the analysis"),
    fmt: str = typer.Option(None, "--format", "-f", help="Report format"),
    as_json: bool = typer.Option(False, "--json", help="Print the full research context as JSON"),
) -> None:
    """Execute a research task on a topic."""
    from .agent import ResearchAgent

    setup_structured_logging(settings.logging.level, settings.logging.json_format)

    overrides: dict[str, Any] = {}
    if max_sources is not None:
        overrides.setdefault("research", {})["max_sources"] = max_sources
    if no_verify:
        overrides.setdefault("research", {})["verification_enabled"] = False

    agent = ResearchAgent(settings.with_overrides(overrides) if overrides else settings)
    options = {"persona": persona, "tone": tone, "depth": depth, "format": fmt}

    try:
        context = asyncio.run(agent.research(topic, options))
    except InvalidTopicError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        print(context.model_dump_json(indent=2))
        return

    print(context.report.content if context.report else "")
    if context.verification is not None:
        print(f"\nVerification: {context.verification.summary or context.verification.status}")
    print("\nSources:")
    for entry in summarize_sources(context.sources):
        print(f"- {entry['title']} ({entry['engine']}) {entry['url']}")
    if context.report and context.report.citations:
        print("\nCitations:")
        for citation in context.report.citations:
            print(f"- {citation.citation}")


@app.command()
def config() -> None:
    """Show current configuration."""
    print(f"Provider: {settings.llm.provider}")
    print(f"Model: {settings.llm.model_name}")
    print(f"Base URL: {settings.llm.base_url or '(default)'}")
    print(f"Temperature: {settings.llm.temperature}")
    print(f"Max Sources: {settings.research.max_sources}")
    print(f"Verification: {settings.research.verification_enabled}")
    print(f"Citation Style: {settings.research.citation_style}")
    print(f"Quality Threshold: {settings.research.result_quality_threshold}")
    print(f"Search Engines: {', '.join(settings.research.search_engines)}")
    print(f"Cache: {'enabled' if settings.storage.cache_enabled else 'disabled'} (ttl {settings.storage.cache_ttl}s)")
    print(f"Plugins: {', '.join(settings.plugins.default_plugins) if settings.plugins.enabled else '(disabled)'}")


@app.command("clear-cache")
def clear_cache() -> None:
    """Delete every cached research result."""
    cache = ResultCache(settings.get_cache_dir(), default_ttl=settings.storage.cache_ttl)
    removed = cache.clear()
    print(json.dumps({"removed": removed, "directory": str(cache.directory)}))


if __name__ == "__main__":
    app()
