"""Citation strings in APA, MLA, Chicago and Harvard styles."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from urllib.parse import urlparse

from .models import AnalyzedResult, Citation, utc_now


def _publisher(url: str) -> str:
    host = urlparse(url).hostname
    if not host:
        return "Website"
    return host.removeprefix("www.")


def _long_date(d: datetime) -> str:
    return f"{d:%B} {d.day}, {d.year}"


def apa(title: str, url: str, date: datetime) -> str:
    return f"{title}. ({_long_date(date)}). Retrieved from {url}"


def mla(title: str, url: str, date: datetime) -> str:
    publisher = _publisher(url)
    return f'{publisher}. "{title}." {publisher}, {date:%b} {date.day}, {date.year}, {url}.'


def chicago(title: str, url: str, date: datetime) -> str:
    return f'{_publisher(url)}. "{title}." {_long_date(date)}. {url}.'


def harvard(title: str, url: str, date: datetime, accessed: datetime | None = None) -> str:
    publisher = _publisher(url)
    accessed = accessed or utc_now()
    return f"{publisher} ({date.year}) '{title}', {publisher}, Available at: {url} (Accessed: {accessed:%d/%m/%Y})"


STYLES: dict[str, Callable[[str, str, datetime], str]] = {
    "apa": apa,
    "mla": mla,
    "chicago": chicago,
    "harvard": harvard,
}


class CitationFormatter:
    """Built-in citation capability. Unknown styles fall back to APA."""

    def cite(self, results: Sequence[AnalyzedResult], style: str = "apa") -> list[Citation]:
        style = style.lower()
        if style not in STYLES:
            style = "apa"
        formatter = STYLES[style]
        citations = []
        for result in results:
            source = result.source
            title = source.title or "Untitled"
            citations.append(
                Citation(
                    source_title=title,
                    url=source.url,
                    citation=formatter(title, source.url, source.timestamp),
                    style=style,
                )
            )
        return citations


def fallback_citations(results: Sequence[AnalyzedResult]) -> list[Citation]:
    """`(title, year)` citations used when no citation capability is registered."""
    year = utc_now().year
    return [
        Citation(source_title=r.source.title, url=r.source.url, citation=f"({r.source.title}, {year})", style="fallback")
        for r in results
    ]
