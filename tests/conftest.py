"""Shared pytest fixtures for the name verifier test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from name_verifier.config.loader import ReferenceData, load_reference_data
from name_verifier.config.settings import Settings
from name_verifier.models.verification import (
    MatchType,
    NameType,
    PlatformEvidence,
    PlatformMatch,
    SearchQuality,
)
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.services.uniqueness import UniquenessScorer

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubSource(BaseSourceAdapter):
    """Source adapter returning canned hits, optionally slow or failing.

    Goes through the real ``BaseSourceAdapter.verify`` so timeouts, error
    classification and match normalization are exercised.
    """

    def __init__(
        self,
        scorer: SimilarityScorer,
        source_id: str,
        reliability: float,
        hits: list[str] | list[SourceHit] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        total: int | None = None,
        timeout_seconds: float = 5.0,
        available: bool = True,
    ) -> None:
        super().__init__(scorer, timeout_seconds=timeout_seconds, retries=0, backoff_seconds=0.0)
        self._SOURCE_ID = source_id
        self._RELIABILITY = reliability
        self._hits = [h if isinstance(h, SourceHit) else SourceHit(name=h) for h in hits or []]
        self._error = error
        self._delay = delay
        self._total = total
        self._available = available
        self.calls: list[tuple[str, NameType]] = []

    def is_available(self) -> bool:
        return self._available

    def set_hits(self, hits: list[str] | list[SourceHit]) -> None:
        self._hits = [h if isinstance(h, SourceHit) else SourceHit(name=h) for h in hits]

    def set_error(self, error: Exception | None) -> None:
        self._error = error

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        self.calls.append((name, name_type))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        total = self._total if self._total is not None else len(self._hits)
        return list(self._hits), total


class NameLatencySource(StubSource):
    """Answers each name after its own delay, echoing *taken* names as hits.

    ``completed`` records names in the order their searches finished.
    """

    def __init__(
        self,
        scorer: SimilarityScorer,
        source_id: str,
        reliability: float,
        delays: dict[str, float],
        taken: set[str] | frozenset[str] = frozenset(),
    ) -> None:
        super().__init__(scorer, source_id, reliability)
        self._delays = dict(delays)
        self._taken = set(taken)
        self.completed: list[str] = []

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        self.calls.append((name, name_type))
        await asyncio.sleep(self._delays.get(name, 0.0))
        self.completed.append(name)
        if name not in self._taken:
            return [], 0
        slug = name.lower().replace(" ", "-")
        return [SourceHit(name=name, url=f"https://example.org/{self.source_id}/{slug}")], 1


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_match(
    name: str,
    source_id: str = "spotify",
    match_type: MatchType = MatchType.EXACT,
    similarity: float | None = None,
    **kwargs: Any,
) -> PlatformMatch:
    if similarity is None:
        similarity = 1.0 if match_type is MatchType.EXACT else 0.8
    return PlatformMatch(
        name=name,
        source_id=source_id,
        match_type=match_type,
        similarity=similarity,
        is_exact_match=match_type is MatchType.EXACT,
        **kwargs,
    )


def make_evidence(
    source_id: str,
    reliability: float,
    matches: list[PlatformMatch] | None = None,
    available: bool = True,
    total_results: int | None = None,
) -> PlatformEvidence:
    matches = matches or []
    exact = [m for m in matches if m.is_exact_match]
    similar = [
        m
        for m in matches
        if not m.is_exact_match
        and (m.similarity >= 0.75 or m.match_type in (MatchType.PHONETIC, MatchType.PARTIAL))
    ]
    return PlatformEvidence(
        source_id=source_id,
        available=available,
        reliability=reliability,
        matches=matches if available else [],
        exact_matches=exact if available else [],
        similar_matches=similar if available else [],
        total_results=total_results if total_results is not None else len(matches),
        search_quality=SearchQuality.GOOD if available else SearchQuality.FAILED,
        error=None if available else "boom",
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file, with fast retries."""
    return Settings(
        _env_file=None,
        spotify_client_id="",
        spotify_client_secret="",
        source_retry_backoff_seconds=0.0,
        request_timeout_seconds=5.0,
        reference_data_path="",
    )


@pytest.fixture
def reference_data() -> ReferenceData:
    return load_reference_data()


@pytest.fixture
def scorer(reference_data: ReferenceData) -> SimilarityScorer:
    return SimilarityScorer(UniquenessScorer(reference_data))
