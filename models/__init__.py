"""
Data Models
"""
from .schemas import (
    USABLE_CONTENT_MIN_LENGTH,
    ExtractionMethod,
    SearchTier,
    Provenance,
    SourceArticle,
    SearchCandidate,
    ScrapedDocument,
    ReferenceArticle,
    SynthesizedArticle,
    ReferenceSummary,
    OptimizationResult,
)

__all__ = [
    "USABLE_CONTENT_MIN_LENGTH",
    "ExtractionMethod",
    "SearchTier",
    "Provenance",
    "SourceArticle",
    "SearchCandidate",
    "ScrapedDocument",
    "ReferenceArticle",
    "SynthesizedArticle",
    "ReferenceSummary",
    "OptimizationResult",
]
