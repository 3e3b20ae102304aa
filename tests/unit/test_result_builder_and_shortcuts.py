"""Unit tests for ResultBuilder and ShortcutService."""

from __future__ import annotations

import pytest

from name_verifier.config.loader import ReferenceData
from name_verifier.config.settings import Settings
from name_verifier.models.verification import (
    MatchType,
    NameType,
    VerificationOptions,
    VerificationStatus,
)
from name_verifier.services.confidence_calculator import ConfidenceCalculator
from name_verifier.services.decision_engine import DecisionEngine
from name_verifier.services.evidence_aggregator import EvidenceAggregator
from name_verifier.services.result_builder import (
    EASTER_EGG_DETAILS,
    MAX_SIMILAR_NAMES,
    MAX_VERIFICATION_LINKS,
    ResultBuilder,
    search_links,
)
from name_verifier.services.shortcuts import ShortcutService
from tests.conftest import make_evidence, make_match


@pytest.fixture()
def engine(settings: Settings) -> DecisionEngine:
    return DecisionEngine(settings)


@pytest.fixture()
def builder(reference_data: ReferenceData) -> ResultBuilder:
    return ResultBuilder(reference_data)


def _build(builder, engine, name, name_type, **per_source):
    evidence = EvidenceAggregator().aggregate(per_source)
    decision = engine.decide(evidence, ConfidenceCalculator().calculate(evidence))
    return builder.build(name, name_type, decision, evidence)


# ======================================================================
# Links
# ======================================================================


class TestSearchLinks:
    def test_band_links(self) -> None:
        links = search_links("Midnight Static", NameType.BAND)
        assert [link.source for link in links] == ["Spotify", "Google", "Bandcamp"]
        assert links[0].url == "https://open.spotify.com/search/%22Midnight%20Static%22"

    def test_song_links(self) -> None:
        links = search_links("Yesterday", NameType.SONG)
        assert [link.source for link in links] == ["Spotify", "Google", "YouTube"]
        assert "song" in links[1].url


# ======================================================================
# Result building
# ======================================================================


class TestResultBuilder:
    def test_available(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        result = _build(
            builder,
            engine,
            "Midnight Static",
            NameType.BAND,
            spotify=make_evidence("spotify", 1.0),
            itunes=make_evidence("itunes", 0.9),
        )
        assert result.status is VerificationStatus.AVAILABLE
        assert result.details == "No existing band found with this name across 2 music platforms."
        assert result.similar_names is None
        assert len(result.verification_links) == 3
        assert result.confidence == pytest.approx(0.9)

    def test_single_platform_wording(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        result = _build(
            builder, engine, "Yesterday Once", NameType.SONG, spotify=make_evidence("spotify", 1.0)
        )
        assert result.details == "No existing song found with this name across 1 music platform."

    def test_taken_describes_top_match(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        match = make_match(
            "Radiohead",
            "spotify",
            genres=["art rock", "alternative rock", "permanent wave"],
            popularity=82.0,
            url="https://open.spotify.com/artist/x",
        )
        result = _build(
            builder,
            engine,
            "Radiohead",
            NameType.BAND,
            spotify=make_evidence("spotify", 1.0, [match]),
        )
        assert result.status is VerificationStatus.TAKEN
        assert result.details == (
            "This band name exists on Spotify (art rock, alternative rock). "
            "Popularity: 82/100. Try these alternatives:"
        )
        assert result.similar_names
        assert result.verification_links[-1].url == "https://open.spotify.com/artist/x"

    def test_similar_band_details(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        result = _build(
            builder,
            engine,
            "Radiohed",
            NameType.BAND,
            spotify=make_evidence(
                "spotify",
                1.0,
                [make_match("Radiohead", "spotify", MatchType.PHONETIC, 0.9, genres=["art rock"])],
            ),
        )
        assert result.status is VerificationStatus.SIMILAR
        assert result.details == (
            "Similar band names found on Spotify (art rock). Consider these alternatives:"
        )

    def test_links_are_capped(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        matches = [
            make_match("Radiohead", "spotify", artist=f"Artist {i}", url=f"https://x.test/{i}")
            for i in range(5)
        ]
        result = _build(
            builder,
            engine,
            "Radiohead",
            NameType.BAND,
            spotify=make_evidence("spotify", 1.0, matches),
        )
        assert len(result.verification_links) == MAX_VERIFICATION_LINKS

    def test_error_result(self, builder: ResultBuilder, engine: DecisionEngine) -> None:
        result = builder.error("Radiohead", NameType.BAND, engine.error("boom"))
        assert result.status is VerificationStatus.UNCERTAIN
        assert result.details.startswith("Verification temporarily unavailable.")
        assert len(result.verification_links) == 3


class TestSuggestions:
    def test_deterministic_and_bounded(self, builder: ResultBuilder) -> None:
        first = builder.suggest_alternatives("Velvet Harbor")
        again = builder.suggest_alternatives("VELVET HARBOR")
        assert 0 < len(first) <= MAX_SIMILAR_NAMES
        assert [s.lower() for s in first] == [s.lower() for s in again]

    def test_never_returns_the_name(self, builder: ResultBuilder) -> None:
        for name in ("Velvet Harbor", "Radiohead", "The Beatles"):
            assert all(s.lower() != name.lower() for s in builder.suggest_alternatives(name))

    def test_article_handling(self, builder: ResultBuilder) -> None:
        assert "The Velvet Harbor" in builder.suggest_alternatives("Velvet Harbor")
        assert "Beatles" in builder.suggest_alternatives("The Beatles")


# ======================================================================
# Shortcuts
# ======================================================================


class TestShortcutService:
    @pytest.fixture()
    def shortcuts(
        self, reference_data: ReferenceData, engine: DecisionEngine, builder: ResultBuilder
    ) -> ShortcutService:
        return ShortcutService(reference_data, engine, builder)

    @pytest.mark.parametrize("name", ["NameJam", "name jam", "N-A-M-E J.A.M", "NAMEJAM!"])
    def test_easter_egg_spellings(self, shortcuts: ShortcutService, name: str) -> None:
        shortcut = shortcuts.check(name, NameType.BAND)
        assert shortcut is not None
        assert shortcut.kind == "easter_egg"
        assert shortcut.ttl_seconds == 0
        assert shortcut.result.status is VerificationStatus.AVAILABLE
        assert shortcut.result.details == EASTER_EGG_DETAILS
        assert shortcut.result.verification_links == []

    def test_famous_artist(self, shortcuts: ShortcutService) -> None:
        shortcut = shortcuts.check("The Beatles", NameType.BAND)
        assert shortcut is not None
        assert shortcut.kind == "famous"
        assert shortcut.ttl_seconds == 7200
        assert shortcut.result.status is VerificationStatus.TAKEN
        assert shortcut.result.confidence == pytest.approx(0.96)
        assert shortcut.result.similar_names

    def test_skip_flags(self, shortcuts: ShortcutService) -> None:
        options = VerificationOptions(skip_easter_eggs=True, skip_famous_artists=True)
        assert shortcuts.check("NameJam", NameType.BAND, options) is None
        assert shortcuts.check("The Beatles", NameType.BAND, options) is None

    def test_ordinary_name(self, shortcuts: ShortcutService) -> None:
        assert shortcuts.check("Midnight Static", NameType.BAND) is None
