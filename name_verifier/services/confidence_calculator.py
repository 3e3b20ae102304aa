"""Confidence calculation over aggregated evidence.

The calculator answers "how sure are we about the matches we found?".
Only sources that returned a meaningful match contribute: exact, phonetic or
partial, plus fuzzy matches the source itself listed as similar.  Each
contributing source adds::

    match_strength(source) x reliability(source)

and the sum is normalized by the total reliability considered (see
``utils.confidence.weighted_confidence``).  Match strength escalates with
match quality:

    partial   0.50  (also fuzzy matches listed as similar)
    phonetic  0.70
    exact     0.85  (0.90 for the primary streaming catalog)

Popularity and result volume add a small boost (capped at +0.1 in total):
+0.1 when the sources together report more than 3 results, +0.05 when any
match has popularity >= 50.

When no source contributes, absence of evidence across several catalogs is
treated as strong evidence of availability and confidence defaults to 0.9.
"""

from __future__ import annotations

from name_verifier.models.verification import (
    AggregatedEvidence,
    ConfidenceFactors,
    ConfidenceResult,
    MatchType,
    PlatformEvidence,
    PlatformMatch,
    SimilarityScore,
    UniquenessScore,
)
from name_verifier.utils.confidence import confidence_to_level, weighted_confidence
from name_verifier.utils.logging import get_logger

logger = get_logger(__name__)

NO_EVIDENCE_CONFIDENCE = 0.9

_PRIMARY_SOURCE = "spotify"
_EXACT_STRENGTH_PRIMARY = 0.9
_EXACT_STRENGTH = 0.85
_PHONETIC_STRENGTH = 0.7
_PARTIAL_STRENGTH = 0.5

_RESULT_COUNT_THRESHOLD = 3
_RESULT_COUNT_BOOST = 0.1
_POPULARITY_THRESHOLD = 50.0
_POPULARITY_BOOST = 0.05
_MAX_BOOST = 0.1

_CONTRIBUTING_RANK = {
    MatchType.NONE: 0,
    MatchType.FUZZY: 1,
    MatchType.PARTIAL: 2,
    MatchType.PHONETIC: 3,
    MatchType.EXACT: 4,
}


def match_strength(source_id: str, match_type: MatchType) -> float:
    """Return the strength one source's best match contributes."""
    if match_type is MatchType.EXACT:
        return _EXACT_STRENGTH_PRIMARY if source_id == _PRIMARY_SOURCE else _EXACT_STRENGTH
    if match_type is MatchType.PHONETIC:
        return _PHONETIC_STRENGTH
    if match_type is MatchType.PARTIAL:
        return _PARTIAL_STRENGTH
    return 0.0


class ConfidenceCalculator:
    """Combines evidence, similarity and uniqueness into one confidence."""

    def calculate(
        self,
        evidence: AggregatedEvidence,
        similarity_scores: list[SimilarityScore] | None = None,
        uniqueness: UniquenessScore | None = None,
    ) -> ConfidenceResult:
        """Compute confidence for *evidence*.

        Parameters
        ----------
        evidence:
            Aggregated evidence for one name.
        similarity_scores:
            Candidate-vs-match scores; used to report the best phonetic
            similarity among the contributing matches.
        uniqueness:
            Offline uniqueness of the candidate, reported as a factor.
        """
        strengths: list[float] = []
        weights: list[float] = []
        contributors: list[tuple[PlatformEvidence, PlatformMatch]] = []

        for source_id in evidence.sources_succeeded:
            source_evidence = evidence.per_source_evidence[source_id]
            best = _best_contributing_match(source_evidence)
            if best is None:
                continue
            match, strength = best
            strengths.append(strength)
            weights.append(source_evidence.reliability)
            contributors.append((source_evidence, match))

        uniqueness_value = uniqueness.score if uniqueness is not None else None

        if not contributors:
            factors = ConfidenceFactors(
                source_reliability=evidence.average_reliability,
                result_count=_total_results(evidence),
                uniqueness=uniqueness_value,
            )
            if evidence.sources_succeeded:
                explanation = (
                    "No matches found across multiple music databases - highly likely available"
                )
            else:
                explanation = "No music database could be searched"
            return ConfidenceResult(
                confidence=NO_EVIDENCE_CONFIDENCE,
                confidence_level=confidence_to_level(NO_EVIDENCE_CONFIDENCE),
                explanation=explanation,
                factors=factors,
            )

        base = weighted_confidence(strengths, weights)

        total_results = _total_results(evidence)
        max_popularity = max(
            (m.popularity for _, m in contributors if m.popularity is not None), default=0.0
        )
        boost = 0.0
        if total_results > _RESULT_COUNT_THRESHOLD:
            boost += _RESULT_COUNT_BOOST
        if max_popularity >= _POPULARITY_THRESHOLD:
            boost += _POPULARITY_BOOST
        boost = min(boost, _MAX_BOOST)

        confidence = max(0.0, min(1.0, base + boost))
        best_type = max((m.match_type for _, m in contributors), key=_CONTRIBUTING_RANK.__getitem__)
        factors = ConfidenceFactors(
            exact_match=best_type is MatchType.EXACT,
            phonetic_similarity=_best_phonetic(similarity_scores),
            source_reliability=sum(weights) / len(weights),
            popularity_score=max_popularity / 100.0,
            result_count=total_results,
            match_quality=best_type,
            uniqueness=uniqueness_value,
        )
        explanation = _explain(best_type, [ev.source_id for ev, _ in contributors], confidence)

        logger.debug(
            "confidence_calculated",
            contributors=len(contributors),
            base=round(base, 3),
            boost=boost,
            confidence=round(confidence, 3),
        )
        return ConfidenceResult(
            confidence=confidence,
            confidence_level=confidence_to_level(confidence),
            explanation=explanation,
            factors=factors,
        )


def _contributing_strength(evidence: PlatformEvidence, match: PlatformMatch) -> float:
    """Strength of *match*, or 0.0 when it does not count as evidence.

    A fuzzy match the source itself listed as similar counts as partial.
    """
    strength = match_strength(evidence.source_id, match.match_type)
    if strength == 0.0 and match in evidence.similar_matches:
        return _PARTIAL_STRENGTH
    return strength


def _best_contributing_match(
    evidence: PlatformEvidence,
) -> tuple[PlatformMatch, float] | None:
    best: tuple[PlatformMatch, float] | None = None
    for match in evidence.matches:
        strength = _contributing_strength(evidence, match)
        if strength == 0.0:
            continue
        if best is None or (strength, match.similarity) > (best[1], best[0].similarity):
            best = (match, strength)
    return best


def _total_results(evidence: AggregatedEvidence) -> int:
    return sum(
        evidence.per_source_evidence[sid].total_results for sid in evidence.sources_succeeded
    )


def _best_phonetic(scores: list[SimilarityScore] | None) -> float:
    if not scores:
        return 0.0
    return max(s.phonetic_similarity for s in scores)


def _explain(best_type: MatchType, sources: list[str], confidence: float) -> str:
    described = {
        MatchType.EXACT: "Exact match",
        MatchType.PHONETIC: "Similar-sounding match",
        MatchType.PARTIAL: "Partial match",
        MatchType.FUZZY: "Close spelling match",
    }[best_type]
    count = len(sources)
    noun = "source" if count == 1 else "sources"
    return f"{described} found on {count} {noun} (confidence {confidence:.2f})"
