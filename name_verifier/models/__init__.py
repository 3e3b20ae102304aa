"""Domain models -- re-exports all public model classes.

Import from ``name_verifier.models`` rather than the individual module:

    from name_verifier.models import VerificationRequest, VerificationResult
"""

from __future__ import annotations

from name_verifier.models.verification import (
    MAX_NAME_LENGTH,
    AggregatedEvidence,
    AggregationQuality,
    CacheEntry,
    ConfidenceFactors,
    ConfidenceResult,
    Decision,
    DecisionFactor,
    DecisionFactorType,
    DecisionMetadata,
    DecisionReason,
    MatchType,
    NameType,
    PlatformEvidence,
    PlatformMatch,
    RecommendedAction,
    SearchQuality,
    SimilarityScore,
    UniquenessFactors,
    UniquenessRecommendation,
    UniquenessScore,
    VerificationLink,
    VerificationOptions,
    VerificationRequest,
    VerificationResult,
    VerificationStatus,
    WordAnalysis,
)
from name_verifier.utils.confidence import ConfidenceLevel

__all__ = [
    "MAX_NAME_LENGTH",
    "AggregatedEvidence",
    "AggregationQuality",
    "CacheEntry",
    "ConfidenceFactors",
    "ConfidenceLevel",
    "ConfidenceResult",
    "Decision",
    "DecisionFactor",
    "DecisionFactorType",
    "DecisionMetadata",
    "DecisionReason",
    "MatchType",
    "NameType",
    "PlatformEvidence",
    "PlatformMatch",
    "RecommendedAction",
    "SearchQuality",
    "SimilarityScore",
    "UniquenessFactors",
    "UniquenessRecommendation",
    "UniquenessScore",
    "VerificationLink",
    "VerificationOptions",
    "VerificationRequest",
    "VerificationResult",
    "VerificationStatus",
    "WordAnalysis",
]
