"""Unit tests for the DecisionEngine rule table."""

from __future__ import annotations

import pytest

from name_verifier.config.settings import Settings
from name_verifier.models.verification import (
    AggregatedEvidence,
    Decision,
    DecisionFactorType,
    DecisionReason,
    MatchType,
    RecommendedAction,
    VerificationStatus,
)
from name_verifier.services.confidence_calculator import ConfidenceCalculator
from name_verifier.services.decision_engine import DecisionEngine
from name_verifier.services.evidence_aggregator import EvidenceAggregator
from name_verifier.services.uniqueness import UniquenessScorer
from name_verifier.utils.confidence import ConfidenceLevel
from tests.conftest import make_evidence, make_match


def _decide(engine: DecisionEngine, **per_source) -> Decision:
    evidence: AggregatedEvidence = EvidenceAggregator().aggregate(per_source)
    confidence = ConfidenceCalculator().calculate(evidence)
    return engine.decide(evidence, confidence)


@pytest.fixture()
def engine(settings: Settings) -> DecisionEngine:
    return DecisionEngine(settings)


# ======================================================================
# Total failure
# ======================================================================


class TestTotalFailure:
    def test_uncertain_by_default(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            spotify=make_evidence("spotify", 1.0, available=False),
            itunes=make_evidence("itunes", 0.9, available=False),
        )
        assert decision.status is VerificationStatus.UNCERTAIN
        assert decision.primary_reason is DecisionReason.PLATFORM_UNAVAILABLE
        assert decision.confidence == pytest.approx(0.6)
        assert decision.confidence_level is ConfidenceLevel.MEDIUM
        assert decision.recommended_action is RecommendedAction.PROCEED_WITH_CAUTION
        assert decision.cache_ttl_seconds == 300

    def test_fail_open(self) -> None:
        engine = DecisionEngine(Settings(_env_file=None, fail_open_on_total_failure=True))
        decision = _decide(engine, spotify=make_evidence("spotify", 1.0, available=False))
        assert decision.status is VerificationStatus.AVAILABLE
        assert decision.confidence <= 0.6
        assert decision.recommended_action is RecommendedAction.PROCEED_WITH_CAUTION
        assert decision.cache_ttl_seconds == 300


# ======================================================================
# Exact matches
# ======================================================================


class TestExactMatches:
    def test_authoritative_exact_wins_over_disagreement(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            itunes=make_evidence("itunes", 0.9, [make_match("Radiohead", "itunes")]),
            spotify=make_evidence("spotify", 1.0),
        )
        assert decision.status is VerificationStatus.TAKEN
        assert decision.primary_reason is DecisionReason.EXACT_MATCH_FOUND
        assert decision.confidence >= 0.75
        assert decision.recommended_action is RecommendedAction.AVOID
        assert decision.cache_ttl_seconds == 7200

    def test_famous_source_exact(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine, famous=make_evidence("famous", 0.9, [make_match("Radiohead", "famous")])
        )
        assert decision.status is VerificationStatus.TAKEN
        assert decision.primary_reason is DecisionReason.FAMOUS_ARTIST_MATCH
        assert decision.confidence == pytest.approx(0.96)

    def test_weak_single_exact_is_similar(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            musicbrainz=make_evidence(
                "musicbrainz", 0.7, [make_match("Midnight Static", "musicbrainz")]
            ),
        )
        assert decision.status is VerificationStatus.SIMILAR
        assert decision.primary_reason is DecisionReason.EXACT_MATCH_FOUND
        assert decision.cache_ttl_seconds == 1800

    def test_corroborated_exact_is_taken(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            bandcamp=make_evidence("bandcamp", 0.8, [make_match("Midnight Static", "bandcamp")]),
            musicbrainz=make_evidence(
                "musicbrainz", 0.7, [make_match("Midnight Static", "musicbrainz")]
            ),
        )
        assert decision.status is VerificationStatus.TAKEN
        assert decision.confidence == pytest.approx(0.85)

    def test_disagreement_is_uncertain(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            musicbrainz=make_evidence(
                "musicbrainz", 0.7, [make_match("Midnight Static", "musicbrainz")]
            ),
            bandcamp=make_evidence("bandcamp", 0.8),
        )
        assert decision.status is VerificationStatus.UNCERTAIN
        assert decision.primary_reason is DecisionReason.INSUFFICIENT_EVIDENCE
        assert decision.recommended_action is RecommendedAction.PROCEED_WITH_CAUTION
        assert decision.cache_ttl_seconds == 600


# ======================================================================
# Similar and available
# ======================================================================


class TestSimilarAndAvailable:
    def test_phonetic_match_is_similar(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            spotify=make_evidence(
                "spotify",
                1.0,
                [make_match("Radiohed", "spotify", MatchType.PHONETIC, similarity=0.9)],
            ),
        )
        assert decision.status is VerificationStatus.SIMILAR
        assert decision.primary_reason is DecisionReason.SIMILAR_MATCH_FOUND
        assert decision.recommended_action is RecommendedAction.CONSIDER_ALTERNATIVES

    def test_close_spelling_is_similar_with_partial_confidence(
        self, engine: DecisionEngine
    ) -> None:
        decision = _decide(
            engine,
            spotify=make_evidence(
                "spotify",
                1.0,
                [make_match("Midnite Statics", "spotify", MatchType.FUZZY, similarity=0.87)],
            ),
        )
        assert decision.status is VerificationStatus.SIMILAR
        assert decision.primary_reason is DecisionReason.SIMILAR_MATCH_FOUND
        assert decision.confidence == pytest.approx(0.5)
        assert decision.confidence_level is ConfidenceLevel.MEDIUM
        assert "highly likely available" not in decision.explanation

    def test_no_matches_is_available(self, engine: DecisionEngine) -> None:
        decision = _decide(
            engine,
            spotify=make_evidence("spotify", 1.0),
            itunes=make_evidence("itunes", 0.9),
        )
        assert decision.status is VerificationStatus.AVAILABLE
        assert decision.primary_reason is DecisionReason.NO_MATCHES_FOUND
        assert decision.recommended_action is RecommendedAction.SAFE_TO_USE
        assert decision.cache_ttl_seconds == 3600
        assert decision.metadata.platforms == ["spotify", "itunes"]

    def test_factors_describe_evidence(self, engine: DecisionEngine) -> None:
        evidence = EvidenceAggregator().aggregate(
            {
                "spotify": make_evidence(
                    "spotify", 1.0, [make_match("Radiohead", "spotify", popularity=90.0)]
                )
            }
        )
        confidence = ConfidenceCalculator().calculate(evidence)
        uniqueness = UniquenessScorer().score("Radiohead")
        decision = engine.decide(evidence, confidence, uniqueness=uniqueness)

        types = [f.type for f in decision.contributing_factors]
        assert DecisionFactorType.PLATFORM_MATCH in types
        assert DecisionFactorType.POPULARITY_SCORE in types
        assert DecisionFactorType.UNIQUENESS_SCORE in types


# ======================================================================
# Shortcut and error outcomes
# ======================================================================


class TestShortcutDecisions:
    def test_easter_egg_is_never_cached(self, engine: DecisionEngine) -> None:
        decision = engine.easter_egg()
        assert decision.status is VerificationStatus.AVAILABLE
        assert decision.primary_reason is DecisionReason.EASTER_EGG_DETECTED
        assert decision.confidence == 1.0
        assert decision.cache_ttl_seconds == 0

    def test_famous_artist(self, engine: DecisionEngine) -> None:
        decision = engine.famous_artist("Radiohead")
        assert decision.status is VerificationStatus.TAKEN
        assert decision.confidence == pytest.approx(0.96)
        assert decision.confidence_level is ConfidenceLevel.VERY_HIGH
        assert decision.cache_ttl_seconds == 7200
        assert decision.metadata.platforms == ["famous"]

    def test_error(self, engine: DecisionEngine) -> None:
        decision = engine.error("pipeline exploded")
        assert decision.status is VerificationStatus.UNCERTAIN
        assert decision.primary_reason is DecisionReason.VERIFICATION_ERROR
        assert decision.confidence == 0.0
        assert decision.cache_ttl_seconds == 300
