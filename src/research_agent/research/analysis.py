"""Heuristic per-source content scoring.

Pure functions only: no I/O, no network. These are keyword and regex
heuristics, not NLP; they exist to give the ranking and credibility stages a
rough, repeatable signal.
"""

from __future__ import annotations

import re
from collections import Counter

from .models import AnalysisScores, BiasLevel, Entities, ExtractedContent, Sentiment

POSITIVE_WORDS: tuple[str, ...] = ("good", "excellent", "positive", "beneficial", "effective", "successful", "improved", "significant")
NEGATIVE_WORDS: tuple[str, ...] = ("bad", "poor", "negative", "harmful", "ineffective", "failed", "worse", "problematic")

BIAS_INDICATORS = frozenset(
    {
        "obviously",
        "clearly",
        "naturally",
        "undoubtedly",
        "certainly",
        "definitely",
        "absolutely",
        "always",
        "never",
        "all",
        "every",
        "none",
        "only",
        "just",
        "simply",
    }
)
BIAS_PHRASES: tuple[str, ...] = ("of course",)

STOP_WORDS = frozenset({"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by", "this", "that", "from", "were", "have"})

HIGH_BIAS_RATIO = 0.05
MEDIUM_BIAS_RATIO = 0.02

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")
_ORG_RE = re.compile(r"\b[A-Z][A-Za-z&-]*(?:\s[A-Z][A-Za-z&-]*)*\s(?:Inc|Corp|LLC|Ltd|Company|Association|Foundation|Institute)\b")
_PERSON_RE = re.compile(r"\b[A-Z][a-z]{2,}\s[A-Z][a-z]{2,}\b")
_CITATION_CUES_RE = re.compile(r"reference|citation|source|study|research|journal|paper|author", re.IGNORECASE)
_STRUCTURE_CUES_RE = re.compile(r"introduction|methodology|results|conclusion|abstract|literature review", re.IGNORECASE)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NON_WORD_RE = re.compile(r"[^\w\s]")


def _text_of(content: ExtractedContent | str) -> str:
    if isinstance(content, str):
        return content
    return content.content


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def calculate_relevance(text: str, topic: str) -> float:
    """Fraction of topic words that appear (as substrings, either way) among the text's words."""
    topic_words = [w for w in topic.lower().split() if w]
    content_words = [w for w in text.lower().split() if w]
    if not topic_words:
        return 0.0

    matches = 0
    for word in topic_words:
        if any(word in cw or cw in word for cw in content_words):
            matches += 1
    return _clamp(matches / len(topic_words))


def detect_sentiment(text: str) -> Sentiment:
    words = text.lower().split()
    positive = sum(1 for w in words if any(p in w for p in POSITIVE_WORDS))
    negative = sum(1 for w in words if any(n in w for n in NEGATIVE_WORDS))
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def extract_entities(text: str) -> Entities:
    return Entities(
        emails=_EMAIL_RE.findall(text),
        urls=_URL_RE.findall(text),
        organizations=_ORG_RE.findall(text),
        people=_PERSON_RE.findall(text),
    )


def extract_topics(text: str, topic: str, limit: int = 5) -> list[str]:
    """Most frequent content words, with the research topic prepended when absent."""
    words = [w for w in _NON_WORD_RE.sub(" ", text.lower()).split() if len(w) > 3 and w not in STOP_WORDS]
    top_words = [word for word, _ in Counter(words).most_common(limit)]
    if topic.lower() not in top_words:
        top_words.insert(0, topic)
    return top_words[: limit + 1]


def assess_quality(text: str) -> float:
    word_count = len(text.split())
    quality = 0.5
    if word_count > 100:
        quality += 0.2
    if word_count > 500:
        quality += 0.1
    if _STRUCTURE_CUES_RE.search(text):
        quality += 0.15
    if _CITATION_CUES_RE.search(text):
        quality += 0.15
    return _clamp(quality)


def detect_bias(text: str) -> BiasLevel:
    """Rate loaded language by the share of words that are absolutist or rhetorical."""
    lowered = text.lower()
    words = [_NON_WORD_RE.sub("", w) for w in lowered.split()]
    if not words:
        return "low"

    count = sum(1 for w in words if w in BIAS_INDICATORS)
    count += sum(lowered.count(phrase) for phrase in BIAS_PHRASES)
    ratio = count / len(words)
    if ratio > HIGH_BIAS_RATIO:
        return "high"
    if ratio > MEDIUM_BIAS_RATIO:
        return "medium"
    return "low"


def assess_readability(text: str) -> float:
    """Automated Readability Index mapped onto [0, 1], 1 being easiest to read.

    ARI 0-6 reads easily; 13 and above is difficult and maps to 0.
    """
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    words = text.split()
    if not sentences or not words:
        return 0.5

    characters = len(re.sub(r"\s", "", text))
    ari = 4.71 * (characters / len(words)) + 0.5 * (len(words) / len(sentences)) - 21.43
    return _clamp((13 - ari) / 13)


def analyze_text(text: str, topic: str) -> AnalysisScores:
    return AnalysisScores(
        relevance=calculate_relevance(text, topic),
        quality=assess_quality(text),
        bias=detect_bias(text),
        readability=assess_readability(text),
        sentiment=detect_sentiment(text),
        entities=extract_entities(text),
        topics=extract_topics(text, topic),
    )


def neutral_scores(topic: str) -> AnalysisScores:
    """Scores used when no analysis capability is available or it fails."""
    return AnalysisScores(relevance=0.8, quality=0.7, sentiment="neutral", topics=[topic])


class HeuristicAnalyzer:
    """Built-in analysis capability."""

    async def analyze(self, content: ExtractedContent | str, topic: str) -> AnalysisScores:
        return analyze_text(_text_of(content), topic)
