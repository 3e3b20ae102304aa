"""Unit tests for component assembly and the verify CLI."""

from __future__ import annotations

import json

import pytest

import name_verifier.main as main_module
from name_verifier.cli.verify import (
    _build_parser,
    _format_json_output,
    _format_text_output,
    _run,
    main,
)
from name_verifier.config.settings import Settings
from name_verifier.main import build_components
from name_verifier.models.verification import (
    AggregationQuality,
    VerificationLink,
    VerificationResult,
    VerificationStatus,
)
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.confidence import ConfidenceLevel
from name_verifier.utils.errors import ConfigurationError
from tests.conftest import StubSource

# ======================================================================
# build_components
# ======================================================================


class TestBuildComponents:
    def test_adapters_follow_enabled_sources(self) -> None:
        settings = Settings(_env_file=None, enabled_sources=["itunes", "nope", "famous"])
        components = build_components(settings)
        assert [a.source_id for a in components["adapters"]] == ["itunes", "famous"]

    def test_no_known_source_is_a_configuration_error(self) -> None:
        settings = Settings(_env_file=None, enabled_sources=["nope", "deezer"])
        with pytest.raises(ConfigurationError, match="no known source"):
            build_components(settings)

    def test_default_graph(self) -> None:
        settings = Settings(_env_file=None, spotify_client_id="", spotify_client_secret="")
        components = build_components(settings)

        ids = [a.source_id for a in components["adapters"]]
        assert ids == ["spotify", "itunes", "musicbrainz", "bandcamp", "famous"]
        spotify = components["adapters"][0]
        assert spotify.is_available() is False
        for key in ("cache", "breakers", "coordinator", "verification_service", "deduplicator"):
            assert components[key] is not None

    def test_injected_adapters_are_used(self, settings: Settings, scorer: SimilarityScorer) -> None:
        stub = StubSource(scorer, "itunes", 0.9)
        components = build_components(settings, adapters=[stub])
        assert components["adapters"] == [stub]
        assert components["coordinator"].adapters == [stub]


# ======================================================================
# Formatting
# ======================================================================


def _result() -> VerificationResult:
    return VerificationResult(
        status=VerificationStatus.SIMILAR,
        details="Similar band names found on Spotify. Consider these alternatives:",
        similar_names=["Velvet Echo", "The Velvet Harbor"],
        verification_links=[
            VerificationLink(name="Spotify Search", url="https://open.spotify.com/x", source="Spotify")
        ],
        confidence=0.7,
        confidence_level=ConfidenceLevel.MEDIUM,
        aggregation_quality=AggregationQuality.HIGH,
    )


class TestFormatting:
    def test_text_output(self) -> None:
        text = _format_text_output("Velvet Harbor", _result())
        assert text.splitlines()[0] == "Velvet Harbor: SIMILAR"
        assert "  Confidence: 70% (medium)" in text
        assert "  Evidence quality: high" in text
        assert "  Similar: Velvet Echo, The Velvet Harbor" in text
        assert "  - Spotify Search: https://open.spotify.com/x" in text

    def test_json_output_uses_camel_case(self) -> None:
        payload = json.loads(_format_json_output(["Velvet Harbor"], [_result()]))
        assert payload[0]["name"] == "Velvet Harbor"
        verification = payload[0]["verification"]
        assert verification["similarNames"] == ["Velvet Echo", "The Velvet Harbor"]
        assert verification["confidenceLevel"] == "medium"


# ======================================================================
# Argument parsing and runner
# ======================================================================


class TestCli:
    def test_parser(self) -> None:
        args = _build_parser().parse_args(
            ["Velvet Harbor", "Glass Owls", "-t", "song", "-p", "itunes", "-p", "famous", "--json"]
        )
        assert args.names == ["Velvet Harbor", "Glass Owls"]
        assert args.type == "song"
        assert args.platforms == ["itunes", "famous"]
        assert args.json_output is True
        assert args.quiet is False

    def test_parser_defaults(self) -> None:
        args = _build_parser().parse_args(["Velvet Harbor"])
        assert args.type == "band"
        assert args.platforms is None

    def test_parser_rejects_unknown_type(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["Velvet Harbor", "--type", "album"])

    @pytest.fixture()
    def stubbed_components(
        self, monkeypatch: pytest.MonkeyPatch, settings: Settings, scorer: SimilarityScorer
    ) -> StubSource:
        source = StubSource(scorer, "itunes", 0.9)
        monkeypatch.setattr(
            main_module,
            "build_components",
            lambda _settings: build_components(settings, adapters=[source]),
        )
        return source

    @pytest.mark.asyncio
    async def test_run_prints_report(
        self, stubbed_components: StubSource, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = _build_parser().parse_args(["Velvet Harbor", "NameJam"])
        assert await _run(args, quiet=False) == 0

        out = capsys.readouterr().out
        assert "Velvet Harbor: AVAILABLE" in out
        assert "NameJam: AVAILABLE" in out
        assert len(stubbed_components.calls) == 1

    @pytest.mark.asyncio
    async def test_run_json(
        self, stubbed_components: StubSource, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = _build_parser().parse_args(["Velvet Harbor", "--json", "-p", "itunes"])
        assert await _run(args, quiet=False) == 0
        out = capsys.readouterr().out
        payload = json.loads(out[out.index("[\n  {"):])
        assert payload[0]["verification"]["status"] == "available"

    def test_main_accepts_verify_subcommand(
        self, stubbed_components: StubSource, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["verify", "Velvet Harbor", "--type", "song"])
        assert excinfo.value.code == 0
        assert "Velvet Harbor: AVAILABLE" in capsys.readouterr().out
        assert stubbed_components.calls[0][1] == "song"

    @pytest.mark.asyncio
    async def test_run_rejects_invalid_name(
        self, stubbed_components: StubSource, capsys: pytest.CaptureFixture[str]
    ) -> None:
        args = _build_parser().parse_args(["   "])
        assert await _run(args, quiet=False) == 2
        assert "Error: Invalid request at index 0" in capsys.readouterr().err
        assert stubbed_components.calls == []
