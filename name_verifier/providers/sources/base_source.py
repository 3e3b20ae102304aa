"""Shared behaviour for every source adapter.

Concrete adapters only implement :meth:`BaseSourceAdapter._search`, which
talks to one external catalog and returns raw :class:`SourceHit` rows.
This base class wraps that call with:

- the adapter's own timeout (``asyncio.wait_for`` per attempt),
- one retry with backoff for retryable failures (see ``utils.retry``),
- error classification into the ``ErrorCode`` taxonomy,
- normalization of hits into ``PlatformMatch`` objects scored by the
  similarity scorer, split into exact and similar lists,
- a search-quality grade.

``verify`` never raises (cancellation aside): any failure becomes a
``PlatformEvidence`` with ``available=False``.
"""

from __future__ import annotations

import asyncio
import time
from abc import abstractmethod
from dataclasses import dataclass, field

import structlog

from name_verifier.interfaces.source_adapter import ISourceAdapter
from name_verifier.models.verification import (
    MatchType,
    NameType,
    PlatformEvidence,
    PlatformMatch,
    SearchQuality,
)
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.errors import VerificationError, classify_error
from name_verifier.utils.logging import get_logger
from name_verifier.utils.retry import retry_async

SIMILAR_MATCH_THRESHOLD = 0.75

USER_AGENT = "name-verifier/0.1.0 (+https://github.com/name-verifier)"


@dataclass(frozen=True)
class SourceHit:
    """One raw search row, already reduced to the fields we keep."""

    name: str
    artist: str | None = None
    popularity: float | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)
    url: str | None = None


class BaseSourceAdapter(ISourceAdapter):
    """Template for source adapters.

    Parameters
    ----------
    scorer:
        Similarity scorer used to grade each hit against the candidate.
    timeout_seconds:
        Per-attempt timeout.
    retries:
        Extra attempts for retryable failures.
    backoff_seconds:
        Base backoff between attempts.
    """

    _SOURCE_ID: str = ""
    _RELIABILITY: float = 0.0

    def __init__(
        self,
        scorer: SimilarityScorer,
        timeout_seconds: float = 10.0,
        retries: int = 1,
        backoff_seconds: float = 0.5,
    ) -> None:
        self._scorer = scorer
        self._timeout = timeout_seconds
        self._retries = retries
        self._backoff = backoff_seconds
        self._logger: structlog.BoundLogger = get_logger(type(self).__module__)

    # -- ISourceAdapter properties ---------------------------------------------

    @property
    def source_id(self) -> str:
        return self._SOURCE_ID

    @property
    def reliability(self) -> float:
        return self._RELIABILITY

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def is_available(self) -> bool:
        return True

    # -- Template hook -----------------------------------------------------------

    @abstractmethod
    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        """Query the catalog.

        Returns the hits plus the catalog's reported total result count.
        May raise; ``verify`` classifies whatever is raised.
        """

    # -- ISourceAdapter.verify ---------------------------------------------------

    async def verify(self, name: str, name_type: NameType) -> PlatformEvidence:
        start = time.perf_counter()
        try:
            hits, total = await retry_async(
                lambda: asyncio.wait_for(self._search(name, name_type), timeout=self._timeout),
                retries=self._retries,
                backoff_seconds=self._backoff,
                source_id=self.source_id,
            )
        except Exception as exc:
            error = classify_error(exc, self.source_id)
            return self._failed(error, self._elapsed_ms(start))

        matches = self._normalize(name, hits)
        exact = [m for m in matches if m.is_exact_match]
        similar = [
            m
            for m in matches
            if not m.is_exact_match
            and (
                m.similarity >= SIMILAR_MATCH_THRESHOLD
                or m.match_type in (MatchType.PHONETIC, MatchType.PARTIAL)
            )
        ]

        if exact:
            quality = SearchQuality.EXCELLENT
        elif matches:
            quality = SearchQuality.GOOD
        else:
            quality = SearchQuality.FAIR

        elapsed = self._elapsed_ms(start)
        self._logger.info(
            "source_search_complete",
            source=self.source_id,
            name=name,
            hits=len(hits),
            matches=len(matches),
            exact=len(exact),
            response_ms=elapsed,
        )
        return PlatformEvidence(
            source_id=self.source_id,
            available=True,
            reliability=self.reliability,
            matches=matches,
            exact_matches=exact,
            similar_matches=similar,
            total_results=max(total, len(hits)),
            search_quality=quality,
            response_time_ms=elapsed,
        )

    # -- Helpers -----------------------------------------------------------------

    def _normalize(self, name: str, hits: list[SourceHit]) -> list[PlatformMatch]:
        matches: list[PlatformMatch] = []
        for hit in hits:
            if not hit.name:
                continue
            score = self._scorer.compare(name, hit.name, self.source_id)
            if score.match_type is MatchType.NONE:
                continue
            popularity = hit.popularity
            if popularity is not None:
                popularity = max(0.0, min(100.0, float(popularity)))
            matches.append(
                PlatformMatch(
                    name=hit.name,
                    artist=hit.artist,
                    popularity=popularity,
                    genres=list(hit.genres),
                    similarity=score.overall_similarity,
                    phonetic_similarity=score.phonetic_similarity,
                    is_exact_match=score.match_type is MatchType.EXACT,
                    match_type=score.match_type,
                    source_id=self.source_id,
                    url=hit.url,
                )
            )
        return matches

    def _failed(self, error: VerificationError, elapsed_ms: float) -> PlatformEvidence:
        self._logger.warning(
            "source_failed",
            source=self.source_id,
            code=error.code.value,
            retryable=error.retryable,
            error=error.message,
        )
        return PlatformEvidence(
            source_id=self.source_id,
            available=False,
            reliability=self.reliability,
            search_quality=SearchQuality.FAILED,
            response_time_ms=elapsed_ms,
            error=error.message,
            error_code=error.code,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return round((time.perf_counter() - start) * 1000, 2)
