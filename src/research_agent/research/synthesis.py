"""Synthesis boundary: prompt text in, generated text out.

Every provider failure surfaces as an `LLMProviderError` subclass so the
pipeline can treat missing credentials, unsupported providers and transport
errors the same way.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..exceptions import LLMProviderError, LLMTransportError
from .models import Citation, Report, Synthesis
from .prompts import SYNTHESIS_SYSTEM_PROMPT

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel

logger = logging.getLogger(__name__)

_MAX_TOKEN_ATTRS = ("max_tokens", "max_completion_tokens", "max_output_tokens")
_HEADING_RE = re.compile(r"^#{1,6}\s*(.+?)\s*#*\s*$")
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*)$")

SECTION_FIELDS = {
    "summary": "summary",
    "executive summary": "summary",
    "key points": "key_points",
    "key findings": "key_points",
    "trends": "trends",
    "gaps": "gaps",
    "gaps and limitations": "gaps",
}

_IGNORED_SECTION = ""

DEGRADED_ANALYSIS_TEXT = "Analysis could not be generated"
DEGRADED_REPORT_TEXT = "Report could not be generated"


@runtime_checkable
class Synthesizer(Protocol):
    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str: ...


class LLMSynthesizer:
    """Synthesizer backed by a browser-use chat model, bounded by a timeout."""

    def __init__(self, llm: "BaseChatModel", timeout: float = 30.0, system_prompt: str = SYNTHESIS_SYSTEM_PROMPT):
        self.llm = llm
        self.timeout = timeout
        self.system_prompt = system_prompt

    def _apply_generation_params(self, temperature: float, max_tokens: int) -> None:
        # Chat models take generation params as fields rather than per call.
        if hasattr(self.llm, "temperature"):
            self.llm.temperature = temperature
        for attr in _MAX_TOKEN_ATTRS:
            if hasattr(self.llm, attr):
                setattr(self.llm, attr, max_tokens)
                break

    async def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        from browser_use.llm.messages import SystemMessage, UserMessage

        self._apply_generation_params(temperature, max_tokens)
        messages = [
            SystemMessage(content=self.system_prompt),
            UserMessage(content=prompt),
        ]

        try:
            response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
        except TimeoutError as e:
            raise LLMTransportError(f"LLM call timed out after {self.timeout}s") from e
        except LLMProviderError:
            raise
        except Exception as e:
            raise LLMTransportError(f"LLM call failed: {e}") from e

        return response.completion or ""


def parse_synthesis(text: str) -> Synthesis:
    """Split markdown analysis text into summary / key points / trends / gaps.

    Text without recognised headings becomes the summary as a whole.
    """
    sections: dict[str, list[str]] = {}
    current: str | None = None
    preamble: list[str] = []

    for line in text.splitlines():
        heading = _HEADING_RE.match(line)
        if heading:
            field = SECTION_FIELDS.get(heading.group(1).strip().lower().rstrip(":"))
            # Lines under an unrecognised heading are dropped.
            current = field or _IGNORED_SECTION
            if field is not None:
                sections.setdefault(field, [])
            continue
        if current is None:
            preamble.append(line)
        elif current != _IGNORED_SECTION:
            sections[current].append(line)

    if not sections:
        return Synthesis(summary=text.strip())

    def bullets(field: str) -> list[str]:
        items = []
        for line in sections.get(field, []):
            match = _BULLET_RE.match(line)
            if match and match.group(1).strip():
                items.append(match.group(1).strip())
        return items

    summary_lines = sections.get("summary", preamble)
    return Synthesis(
        summary="\n".join(summary_lines).strip(),
        key_points=bullets("key_points"),
        trends=bullets("trends"),
        gaps=bullets("gaps"),
    )


def degraded_analysis() -> Synthesis:
    return Synthesis(summary=DEGRADED_ANALYSIS_TEXT, degraded=True)


def degraded_report(fmt: str, citations: Sequence[Citation] = ()) -> Report:
    return Report(content=DEGRADED_REPORT_TEXT, citations=list(citations), format=fmt, degraded=True)
