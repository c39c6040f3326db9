"""Research pipeline, capabilities, cache and verification."""

from .cache import ResultCache, cache_key
from .models import AnalysisScores, AnalyzedResult, ResearchContext, Source, Verification
from .pipeline import ResearchPipeline
from .registry import CapabilityKind, CapabilityRegistry
from .verification import VerificationEngine

__all__ = [
    "AnalysisScores",
    "AnalyzedResult",
    "CapabilityKind",
    "CapabilityRegistry",
    "ResearchContext",
    "ResearchPipeline",
    "ResultCache",
    "Source",
    "Verification",
    "VerificationEngine",
    "cache_key",
]
