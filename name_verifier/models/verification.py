"""Verification domain models.

Defines enums and Pydantic v2 models for every stage of a verification:
the incoming request, per-source evidence, aggregated evidence, similarity
and uniqueness scores, the decision, and the public result.  All models use
frozen config; stages produce new instances instead of mutating old ones.

Flow of data:
    VerificationRequest
        -> PlatformEvidence (one per source adapter)
        -> AggregatedEvidence
        -> SimilarityScore[] / UniquenessScore
        -> ConfidenceResult
        -> Decision
        -> VerificationResult (public; the only shape other code sees)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from name_verifier.utils.confidence import ConfidenceLevel
from name_verifier.utils.errors import ErrorCode

MAX_NAME_LENGTH = 200


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class NameType(str, Enum):  # noqa: UP042
    """What kind of name is being verified."""

    BAND = "band"
    SONG = "song"


class VerificationStatus(str, Enum):  # noqa: UP042
    """Terminal status of a verification."""

    AVAILABLE = "available"
    SIMILAR = "similar"
    TAKEN = "taken"
    UNCERTAIN = "uncertain"


class MatchType(str, Enum):  # noqa: UP042
    """How closely a matched entity resembles the candidate name.

    Thresholds (lexical similarity unless noted):
        EXACT:    >= 0.97
        PHONETIC: phonetic codes equal AND >= 0.6
        PARTIAL:  token overlap >= 0.5
        FUZZY:    >= 0.3
        NONE:     anything weaker
    """

    EXACT = "exact"
    PHONETIC = "phonetic"
    PARTIAL = "partial"
    FUZZY = "fuzzy"
    NONE = "none"


class SearchQuality(str, Enum):  # noqa: UP042
    """Quality of a single source's search."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    FAILED = "failed"


class AggregationQuality(str, Enum):  # noqa: UP042
    """Confidence in the evidence-gathering process itself."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendedAction(str, Enum):  # noqa: UP042
    AVOID = "avoid"
    CONSIDER_ALTERNATIVES = "consider-alternatives"
    PROCEED_WITH_CAUTION = "proceed-with-caution"
    SAFE_TO_USE = "safe-to-use"


class DecisionReason(str, Enum):  # noqa: UP042
    """Primary reason recorded on a :class:`Decision`."""

    EXACT_MATCH_FOUND = "exact-match-found"
    SIMILAR_MATCH_FOUND = "similar-match-found"
    FAMOUS_ARTIST_MATCH = "famous-artist-match"
    EASTER_EGG_DETECTED = "easter-egg-detected"
    NO_MATCHES_FOUND = "no-matches-found"
    INSUFFICIENT_EVIDENCE = "insufficient-evidence"
    PLATFORM_UNAVAILABLE = "platform-unavailable"
    VERIFICATION_ERROR = "verification-error"


class DecisionFactorType(str, Enum):  # noqa: UP042
    PLATFORM_MATCH = "platform-match"
    SIMILARITY_SCORE = "similarity-score"
    POPULARITY_SCORE = "popularity-score"
    UNIQUENESS_SCORE = "uniqueness-score"
    CACHE_HIT = "cache-hit"
    FAMOUS_MATCH = "famous-match"
    EASTER_EGG = "easter-egg"


class UniquenessRecommendation(str, Enum):  # noqa: UP042
    VERY_UNIQUE = "very-unique"
    UNIQUE = "unique"
    SOMEWHAT_UNIQUE = "somewhat-unique"
    COMMON = "common"
    VERY_COMMON = "very-common"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class VerificationOptions(BaseModel):
    """Per-request switches.

    ``max_cache_age`` (seconds) rejects cached results older than the given
    age.  ``platforms_to_query`` restricts fan-out to the named sources;
    ``None`` means every enabled source.
    """

    model_config = ConfigDict(frozen=True)

    cache_enabled: bool = True
    max_cache_age: int | None = Field(default=None, ge=0)
    platforms_to_query: list[str] | None = None
    skip_easter_eggs: bool = False
    skip_famous_artists: bool = False


class VerificationRequest(BaseModel):
    """One ``(name, type)`` pair to verify.  Built per call, never cached."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    type: NameType
    options: VerificationOptions = Field(default_factory=VerificationOptions)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------


class PlatformMatch(BaseModel):
    """One candidate real-world entity returned by a source.

    ``popularity`` is on the source's native 0-100 scale when known.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    artist: str | None = None
    popularity: float | None = Field(default=None, ge=0.0, le=100.0)
    genres: list[str] = Field(default_factory=list)
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    phonetic_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    is_exact_match: bool = False
    match_type: MatchType = MatchType.NONE
    source_id: str
    url: str | None = None


class PlatformEvidence(BaseModel):
    """Normalized result bundle from one source for one request.

    ``available`` is ``False`` when the source could not be queried; in
    that case ``error`` / ``error_code`` describe why and the match lists
    are empty.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    available: bool
    reliability: float = Field(..., ge=0.0, le=1.0)
    matches: list[PlatformMatch] = Field(default_factory=list)
    exact_matches: list[PlatformMatch] = Field(default_factory=list)
    similar_matches: list[PlatformMatch] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0)
    search_quality: SearchQuality = SearchQuality.FAIR
    response_time_ms: float = Field(default=0.0, ge=0.0)
    error: str | None = None
    error_code: ErrorCode | None = None


class AggregatedEvidence(BaseModel):
    """Union of all per-source evidence for one name.

    Recomputed on every cache miss; never cached on its own.
    """

    model_config = ConfigDict(frozen=True)

    all_matches: list[PlatformMatch] = Field(default_factory=list)
    exact_matches: list[PlatformMatch] = Field(default_factory=list)
    similar_matches: list[PlatformMatch] = Field(default_factory=list)
    per_source_evidence: dict[str, PlatformEvidence] = Field(default_factory=dict)
    highest_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    average_reliability: float = Field(default=0.0, ge=0.0, le=1.0)
    sources_queried: list[str] = Field(default_factory=list)
    sources_succeeded: list[str] = Field(default_factory=list)
    sources_failed: list[str] = Field(default_factory=list)
    aggregation_quality: AggregationQuality = AggregationQuality.LOW


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


class SimilarityScore(BaseModel):
    """Candidate-vs-match similarity breakdown.

    ``edit_distance`` is the normalized token-level edit distance in
    [0, 1]; 0.0 means the token-sorted names are identical.
    """

    model_config = ConfigDict(frozen=True)

    match_name: str
    source_id: str | None = None
    overall_similarity: float = Field(..., ge=0.0, le=1.0)
    phonetic_similarity: float = Field(..., ge=0.0, le=1.0)
    edit_distance: float = Field(..., ge=0.0, le=1.0)
    token_similarity: float = Field(..., ge=0.0, le=1.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    match_type: MatchType


class UniquenessFactors(BaseModel):
    model_config = ConfigDict(frozen=True)

    common_word_penalty: float = 0.0
    length_bonus: float = 0.0
    complexity_bonus: float = 0.0
    unusual_term_bonus: float = 0.0
    genre_relevance_bonus: float = 0.0


class WordAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_words: int = 0
    common_words: list[str] = Field(default_factory=list)
    unusual_words: list[str] = Field(default_factory=list)
    technical_terms: list[str] = Field(default_factory=list)
    genre_terms: list[str] = Field(default_factory=list)


class UniquenessScore(BaseModel):
    """Offline uniqueness of a candidate name, independent of evidence."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0)
    factors: UniquenessFactors = Field(default_factory=UniquenessFactors)
    word_analysis: WordAnalysis = Field(default_factory=WordAnalysis)
    recommendation: UniquenessRecommendation


class ConfidenceFactors(BaseModel):
    model_config = ConfigDict(frozen=True)

    exact_match: bool = False
    phonetic_similarity: float = 0.0
    source_reliability: float = 0.0
    popularity_score: float = 0.0
    result_count: int = 0
    match_quality: MatchType = MatchType.NONE
    uniqueness: float | None = None


class ConfidenceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    confidence: float = Field(..., ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel
    explanation: str
    factors: ConfidenceFactors = Field(default_factory=ConfidenceFactors)


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------


class DecisionFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DecisionFactorType
    weight: float = Field(..., ge=0.0, le=1.0)
    value: float = Field(..., ge=0.0, le=1.0)
    description: str
    source: str | None = None


class DecisionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    decided_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    evidence_quality: AggregationQuality = AggregationQuality.LOW
    algorithm_version: str = "1.0"
    platforms: list[str] = Field(default_factory=list)


class Decision(BaseModel):
    """Terminal output of the decision stage."""

    model_config = ConfigDict(frozen=True)

    status: VerificationStatus
    confidence: float = Field(..., ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel
    primary_reason: DecisionReason
    contributing_factors: list[DecisionFactor] = Field(default_factory=list)
    recommended_action: RecommendedAction
    cache_ttl_seconds: int = Field(..., ge=0)
    explanation: str = ""
    metadata: DecisionMetadata = Field(default_factory=DecisionMetadata)


# ---------------------------------------------------------------------------
# Public result
# ---------------------------------------------------------------------------


class VerificationLink(BaseModel):
    """Outbound search link for manual checking."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    source: str


class VerificationResult(BaseModel):
    """The public, externally consumed verification shape.

    Serializes with camelCase keys (``similarNames``, ``verificationLinks``,
    ``confidenceLevel``, ``aggregationQuality``).  ``aggregation_quality``
    is set whenever the result came from live evidence, so callers can
    distrust verdicts built on low-quality evidence.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    status: VerificationStatus
    details: str
    similar_names: list[str] | None = None
    verification_links: list[VerificationLink] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel | None = None
    aggregation_quality: AggregationQuality | None = None


class CacheEntry(BaseModel):
    """A cached result plus the bookkeeping needed to expire it.

    ``created_at`` is a monotonic timestamp from the cache's clock.
    """

    model_config = ConfigDict(frozen=True)

    result: VerificationResult
    created_at: float
    ttl_seconds: int = Field(..., ge=0)
