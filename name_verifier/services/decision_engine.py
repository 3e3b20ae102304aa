"""Maps evidence and confidence to a terminal verification decision.

Architecture overview
---------------------
The engine is a single-transition state machine: given the aggregated
evidence, the confidence result and the similarity scores it picks exactly
one status, a recommended action and an outcome-dependent cache TTL.
Rules are checked in order; the first that applies wins.

1. **Total failure** -- no source succeeded.  ``uncertain`` by default, or
   a low-confidence ``available`` when ``fail_open_on_total_failure`` is
   set.  Cached with the short error TTL either way.
2. **Authoritative exact match** -- an exact match from a source with
   reliability >= 0.9 is ``taken`` no matter what weaker sources say.
3. **Low aggregation quality** -- sources disagree sharply: ``uncertain``.
4. **Other exact match** -- ``taken`` when confidence reaches the taken
   threshold (0.75), else ``similar``.
5. **Phonetic / partial / close matches** -- ``similar``.
6. **Medium confidence** -- ``similar``.
7. **Nothing meaningful** -- ``available`` (``uncertain`` when confidence
   is below the taken threshold).

Actions follow the status: taken -> avoid, similar -> consider-alternatives,
available -> safe-to-use, uncertain -> proceed-with-caution.
"""

from __future__ import annotations

from name_verifier.config.settings import Settings
from name_verifier.models.verification import (
    AggregatedEvidence,
    AggregationQuality,
    ConfidenceResult,
    Decision,
    DecisionFactor,
    DecisionFactorType,
    DecisionMetadata,
    DecisionReason,
    MatchType,
    PlatformMatch,
    RecommendedAction,
    SimilarityScore,
    UniquenessScore,
    VerificationStatus,
)
from name_verifier.utils.confidence import (
    ConfidenceLevel,
    confidence_to_level,
    dampen_confidence,
)
from name_verifier.utils.logging import get_logger

logger = get_logger(__name__)

FAMOUS_SOURCE_ID = "famous"
FAMOUS_CONFIDENCE = 0.96

_ACTIONS = {
    VerificationStatus.TAKEN: RecommendedAction.AVOID,
    VerificationStatus.SIMILAR: RecommendedAction.CONSIDER_ALTERNATIVES,
    VerificationStatus.AVAILABLE: RecommendedAction.SAFE_TO_USE,
    VerificationStatus.UNCERTAIN: RecommendedAction.PROCEED_WITH_CAUTION,
}


def action_for(status: VerificationStatus) -> RecommendedAction:
    return _ACTIONS[status]


class DecisionEngine:
    """Turns evidence into a :class:`Decision`.

    Parameters
    ----------
    settings:
        Supplies the TTL table, the taken-confidence threshold, the
        high-reliability threshold and the total-failure policy.
    """

    def __init__(self, settings: Settings) -> None:
        self._ttl = settings.ttl_table()
        self._taken_threshold = settings.taken_confidence_threshold
        self._high_reliability = settings.high_reliability_threshold
        self._fail_open = settings.fail_open_on_total_failure

    # ------------------------------------------------------------------
    # Live evidence
    # ------------------------------------------------------------------

    def decide(
        self,
        evidence: AggregatedEvidence,
        confidence: ConfidenceResult,
        similarity_scores: list[SimilarityScore] | None = None,
        uniqueness: UniquenessScore | None = None,
    ) -> Decision:
        """Apply the rule table to one name's evidence."""
        factors = self._factors(evidence, similarity_scores or [], uniqueness)
        metadata = DecisionMetadata(
            evidence_quality=evidence.aggregation_quality,
            platforms=list(evidence.sources_queried),
        )
        score = confidence.confidence

        if not evidence.sources_succeeded:
            dampened = dampen_confidence(score)
            status = VerificationStatus.AVAILABLE if self._fail_open else VerificationStatus.UNCERTAIN
            logger.warning(
                "all_sources_failed",
                sources=evidence.sources_failed,
                fail_open=self._fail_open,
                status=status.value,
            )
            return self._build(
                status=status,
                confidence=dampened,
                reason=DecisionReason.PLATFORM_UNAVAILABLE,
                factors=factors,
                ttl=self._ttl["error"],
                explanation="No music database could be reached; availability is unconfirmed",
                metadata=metadata,
                action=RecommendedAction.PROCEED_WITH_CAUTION,
            )

        authoritative = self._authoritative_exact(evidence)
        if authoritative is not None:
            famous = authoritative.source_id == FAMOUS_SOURCE_ID
            return self._build(
                status=VerificationStatus.TAKEN,
                confidence=max(score, FAMOUS_CONFIDENCE if famous else self._taken_threshold),
                reason=(
                    DecisionReason.FAMOUS_ARTIST_MATCH if famous else DecisionReason.EXACT_MATCH_FOUND
                ),
                factors=factors,
                ttl=self._ttl["famous" if famous else VerificationStatus.TAKEN.value],
                explanation=confidence.explanation,
                metadata=metadata,
            )

        if evidence.aggregation_quality is AggregationQuality.LOW:
            return self._build(
                status=VerificationStatus.UNCERTAIN,
                confidence=dampen_confidence(score),
                reason=DecisionReason.INSUFFICIENT_EVIDENCE,
                factors=factors,
                ttl=self._ttl[VerificationStatus.UNCERTAIN.value],
                explanation="Music databases disagree about this name",
                metadata=metadata,
            )

        if evidence.exact_matches:
            if score >= self._taken_threshold:
                status, ttl_key = VerificationStatus.TAKEN, VerificationStatus.TAKEN.value
            else:
                status, ttl_key = VerificationStatus.SIMILAR, VerificationStatus.SIMILAR.value
            return self._build(
                status=status,
                confidence=score,
                reason=DecisionReason.EXACT_MATCH_FOUND,
                factors=factors,
                ttl=self._ttl[ttl_key],
                explanation=confidence.explanation,
                metadata=metadata,
            )

        if evidence.similar_matches or any(
            m.match_type in (MatchType.PHONETIC, MatchType.PARTIAL) for m in evidence.all_matches
        ):
            return self._similar(score, factors, confidence.explanation, metadata)

        level = confidence_to_level(score)
        if level is ConfidenceLevel.MEDIUM:
            return self._similar(score, factors, confidence.explanation, metadata)

        if score < self._taken_threshold:
            return self._build(
                status=VerificationStatus.UNCERTAIN,
                confidence=score,
                reason=DecisionReason.INSUFFICIENT_EVIDENCE,
                factors=factors,
                ttl=self._ttl[VerificationStatus.UNCERTAIN.value],
                explanation=confidence.explanation,
                metadata=metadata,
            )

        return self._build(
            status=VerificationStatus.AVAILABLE,
            confidence=score,
            reason=DecisionReason.NO_MATCHES_FOUND,
            factors=factors,
            ttl=self._ttl[VerificationStatus.AVAILABLE.value],
            explanation=confidence.explanation,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Shortcut outcomes
    # ------------------------------------------------------------------

    def easter_egg(self) -> Decision:
        return self._build(
            status=VerificationStatus.AVAILABLE,
            confidence=1.0,
            reason=DecisionReason.EASTER_EGG_DETECTED,
            factors=[
                DecisionFactor(
                    type=DecisionFactorType.EASTER_EGG,
                    weight=1.0,
                    value=1.0,
                    description="Easter egg name",
                )
            ],
            ttl=self._ttl["easter_egg"],
            explanation="Easter egg",
            metadata=DecisionMetadata(evidence_quality=AggregationQuality.HIGH),
        )

    def famous_artist(self, name: str) -> Decision:
        return self._build(
            status=VerificationStatus.TAKEN,
            confidence=FAMOUS_CONFIDENCE,
            reason=DecisionReason.FAMOUS_ARTIST_MATCH,
            factors=[
                DecisionFactor(
                    type=DecisionFactorType.FAMOUS_MATCH,
                    weight=1.0,
                    value=FAMOUS_CONFIDENCE,
                    description=f"'{name}' is on the famous-artist list",
                    source=FAMOUS_SOURCE_ID,
                )
            ],
            ttl=self._ttl["famous"],
            explanation="Famous artist name",
            metadata=DecisionMetadata(
                evidence_quality=AggregationQuality.HIGH, platforms=[FAMOUS_SOURCE_ID]
            ),
        )

    def error(self, message: str) -> Decision:
        """Decision used when the verification pipeline itself failed."""
        return self._build(
            status=VerificationStatus.UNCERTAIN,
            confidence=0.0,
            reason=DecisionReason.VERIFICATION_ERROR,
            factors=[],
            ttl=self._ttl["error"],
            explanation=message,
            metadata=DecisionMetadata(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _authoritative_exact(self, evidence: AggregatedEvidence) -> PlatformMatch | None:
        best: PlatformMatch | None = None
        best_reliability = -1.0
        for source_id in evidence.sources_succeeded:
            source_evidence = evidence.per_source_evidence[source_id]
            if source_evidence.reliability < self._high_reliability:
                continue
            if source_evidence.exact_matches and source_evidence.reliability > best_reliability:
                best = source_evidence.exact_matches[0]
                best_reliability = source_evidence.reliability
        return best

    def _similar(
        self,
        score: float,
        factors: list[DecisionFactor],
        explanation: str,
        metadata: DecisionMetadata,
    ) -> Decision:
        return self._build(
            status=VerificationStatus.SIMILAR,
            confidence=score,
            reason=DecisionReason.SIMILAR_MATCH_FOUND,
            factors=factors,
            ttl=self._ttl[VerificationStatus.SIMILAR.value],
            explanation=explanation,
            metadata=metadata,
        )

    @staticmethod
    def _factors(
        evidence: AggregatedEvidence,
        scores: list[SimilarityScore],
        uniqueness: UniquenessScore | None,
    ) -> list[DecisionFactor]:
        factors: list[DecisionFactor] = []
        for source_id in evidence.sources_succeeded:
            source_evidence = evidence.per_source_evidence[source_id]
            if not source_evidence.matches:
                continue
            top = max(m.similarity for m in source_evidence.matches)
            factors.append(
                DecisionFactor(
                    type=DecisionFactorType.PLATFORM_MATCH,
                    weight=source_evidence.reliability,
                    value=top,
                    description=f"{len(source_evidence.matches)} match(es) on {source_id}",
                    source=source_id,
                )
            )
        if scores:
            best = max(scores, key=lambda s: s.overall_similarity)
            factors.append(
                DecisionFactor(
                    type=DecisionFactorType.SIMILARITY_SCORE,
                    weight=0.8,
                    value=best.overall_similarity,
                    description=f"Closest match '{best.match_name}' ({best.match_type.value})",
                    source=best.source_id,
                )
            )
        popularities = [m.popularity for m in evidence.all_matches if m.popularity is not None]
        if popularities:
            factors.append(
                DecisionFactor(
                    type=DecisionFactorType.POPULARITY_SCORE,
                    weight=0.3,
                    value=max(popularities) / 100.0,
                    description="Highest popularity among matches",
                )
            )
        if uniqueness is not None:
            factors.append(
                DecisionFactor(
                    type=DecisionFactorType.UNIQUENESS_SCORE,
                    weight=0.2,
                    value=uniqueness.score,
                    description=f"Name uniqueness: {uniqueness.recommendation.value}",
                )
            )
        return factors

    @staticmethod
    def _build(
        *,
        status: VerificationStatus,
        confidence: float,
        reason: DecisionReason,
        factors: list[DecisionFactor],
        ttl: int,
        explanation: str,
        metadata: DecisionMetadata,
        action: RecommendedAction | None = None,
    ) -> Decision:
        confidence = max(0.0, min(1.0, confidence))
        decision = Decision(
            status=status,
            confidence=confidence,
            confidence_level=confidence_to_level(confidence),
            primary_reason=reason,
            contributing_factors=factors,
            recommended_action=action or action_for(status),
            cache_ttl_seconds=ttl,
            explanation=explanation,
            metadata=metadata,
        )
        logger.debug(
            "decision_made",
            status=status.value,
            reason=reason.value,
            confidence=round(confidence, 3),
            ttl=ttl,
        )
        return decision
