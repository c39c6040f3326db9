"""Cross-source verification and credibility scoring.

Produces a confidence signal from independently retrieved sources without any
ground truth:

1. Split each source's text into sentence-like claims.
2. Fold claims to a coarse identity key (case, whitespace and punctuation only).
   Paraphrases are NOT unified; strengthening the fold would shift the
   calibration of the confidence formula below.
3. Claims found in two or more distinct sources become cross-references.
4. Claims with numbers or assertion verbs are surfaced as fact-check candidates.
5. Each source gets a heuristic credibility score in [0, 1].
6. Overall confidence weights corroboration (0.6) over mean credibility (0.4).

The engine never raises on well-formed input; with nothing to work with it
degrades to a low confidence.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from urllib.parse import urlparse

from .models import (
    AnalyzedResult,
    BiasLevel,
    ClaimOccurrence,
    CredibilityScore,
    CrossReference,
    FactCheck,
    ResearchContext,
    Verification,
)

logger = logging.getLogger(__name__)

MIN_CLAIM_LENGTH = 10

CROSS_REFERENCE_WEIGHT = 0.6
CREDIBILITY_WEIGHT = 0.4
CROSS_REFERENCE_STEP = 0.3
DEFAULT_CREDIBILITY = 0.5
HIGH_CREDIBILITY = 0.8

INSTITUTIONAL_TLDS = frozenset({"edu", "org", "gov"})
COMMERCIAL_TLDS = frozenset({"com"})

READABILITY_HIGH = 0.7
READABILITY_LOW = 0.2

_CLAIM_SPLIT_RE = re.compile(r"[.!?]+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"\d{4}|\d+")
_ASSERTION_RE = re.compile(r"found|discovered|research|study|shows|indicates|reveals|demonstrates", re.IGNORECASE)


def split_claims(text: str) -> list[str]:
    """Split text into sentence-like segments, dropping fragments under MIN_CLAIM_LENGTH chars."""
    segments = (s.strip() for s in _CLAIM_SPLIT_RE.split(text))
    return [s for s in segments if len(s) >= MIN_CLAIM_LENGTH]


def normalize_claim(claim: str) -> str:
    lowered = _PUNCTUATION_RE.sub("", claim.lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def cross_reference(results: Sequence[AnalyzedResult]) -> list[CrossReference]:
    """Group claims by normalized key and keep those backed by >= 2 distinct sources.

    Sorted by supporting-source count, descending; ties keep first-seen order.
    """
    occurrences: dict[str, list[ClaimOccurrence]] = {}
    supporters: dict[str, set[str]] = {}

    for result in results:
        for segment in split_claims(result.content.content):
            key = normalize_claim(segment)
            if not key:
                continue
            seen = supporters.setdefault(key, set())
            if result.source.id in seen:
                continue
            seen.add(result.source.id)
            occurrences.setdefault(key, []).append(
                ClaimOccurrence(source=result.source.title, url=result.source.url, content=segment)
            )

    cross_refs = [
        CrossReference(claim=key, sources=occurrences[key], count=len(ids))
        for key, ids in supporters.items()
        if len(ids) >= 2
    ]
    cross_refs.sort(key=lambda ref: ref.count, reverse=True)
    return cross_refs


def is_fact_checkable(claim: str) -> bool:
    return bool(_NUMBER_RE.search(claim) or _ASSERTION_RE.search(claim))


def flag_fact_checks(results: Sequence[AnalyzedResult]) -> list[FactCheck]:
    """Surface claims with numbers, years or assertion verbs. Nothing is actually checked."""
    checks: list[FactCheck] = []
    for result in results:
        for segment in split_claims(result.content.content):
            if is_fact_checkable(segment):
                checks.append(FactCheck(claim=segment, source=result.source.title, url=result.source.url))
    return checks


def top_level_domain(url: str) -> str | None:
    host = urlparse(url).hostname
    if not host or "." not in host:
        return None
    return host.rsplit(".", 1)[-1].lower()


def score_credibility(
    url: str,
    quality: float | None = None,
    bias: BiasLevel | None = None,
    readability: float | None = None,
) -> float:
    """Heuristic credibility for one source, always clamped to [0, 1]."""
    score = 0.5

    tld = top_level_domain(url)
    if tld in INSTITUTIONAL_TLDS:
        score += 0.2
    elif tld in COMMERCIAL_TLDS:
        score += 0.1

    if quality is not None:
        score = (score + quality) / 2

    if bias == "high":
        score -= 0.2
    elif bias == "medium":
        score -= 0.1

    if readability is not None:
        if readability > READABILITY_HIGH:
            score += 0.1
        elif readability < READABILITY_LOW:
            score -= 0.1

    return max(0.0, min(1.0, score))


def calculate_credibility(results: Sequence[AnalyzedResult]) -> list[CredibilityScore]:
    scores: list[CredibilityScore] = []
    for result in results:
        analysis = result.analysis
        credibility = score_credibility(
            result.source.url,
            quality=analysis.quality,
            bias=analysis.bias,
            readability=analysis.readability,
        )
        scores.append(CredibilityScore(source=result.source.title, url=result.source.url, credibility=credibility))
    return scores


def overall_confidence(cross_reference_count: int, credibilities: Sequence[float]) -> float:
    """0.6 * min(1, 0.3 * cross-references) + 0.4 * mean credibility (0.5 when empty)."""
    corroboration = min(1.0, cross_reference_count * CROSS_REFERENCE_STEP)
    mean_credibility = sum(credibilities) / len(credibilities) if credibilities else DEFAULT_CREDIBILITY
    return CROSS_REFERENCE_WEIGHT * corroboration + CREDIBILITY_WEIGHT * mean_credibility


def summarize(
    cross_references: Sequence[CrossReference],
    fact_checks: Sequence[FactCheck],
    credibility_scores: Sequence[CredibilityScore],
) -> str:
    total = len(credibility_scores)
    highly_credible = sum(1 for c in credibility_scores if c.credibility > HIGH_CREDIBILITY)
    cross_count = len(cross_references)

    if cross_count:
        corroboration = f"Key findings supported by multiple sources: {cross_count} claims"
    else:
        corroboration = "No cross-referenced claims found."

    if highly_credible == total:
        distribution = "All sources are highly credible"
    else:
        distribution = f"{highly_credible} out of {total} sources are highly credible"

    return (
        "Verification Summary:\n"
        f"- Total sources analyzed: {total}\n"
        f"- Highly credible sources (credibility > {HIGH_CREDIBILITY}): {highly_credible}\n"
        f"- Claims with cross-references: {cross_count}\n"
        f"- Claims identified for fact-checking: {len(fact_checks)}\n\n"
        f"{corroboration}\n\n"
        f"Credibility distribution: {distribution}"
    )


def verify_results(results: Sequence[AnalyzedResult]) -> Verification:
    cross_refs = cross_reference(results)
    fact_checks = flag_fact_checks(results)
    credibility = calculate_credibility(results)
    confidence = overall_confidence(len(cross_refs), [c.credibility for c in credibility])

    return Verification(
        status="completed",
        confidence=confidence,
        cross_references=cross_refs,
        fact_checks=fact_checks,
        credibility_scores=credibility,
        summary=summarize(cross_refs, fact_checks, credibility),
    )


def unverified() -> Verification:
    """Placeholder used when verification is unavailable or fails."""
    return Verification(status="not_verified", confidence=0.5, cross_references=[])


class VerificationEngine:
    """Built-in verification capability."""

    async def verify(self, context: ResearchContext) -> Verification:
        verification = verify_results(context.results)
        logger.debug(
            f"Verified {len(context.results)} results: {len(verification.cross_references)} cross-references, "
            f"confidence {verification.confidence:.2f}"
        )
        return verification
