"""Offline famous-artist source.

Fuzzy-matches the candidate against the bundled famous-artist list with
rapidfuzz.  Exact famous names are normally answered earlier by the
shortcut service; this source catches near-misses ("Beatels", "Led
Zepelin") and still reports exact hits when shortcuts are skipped.
"""

from __future__ import annotations

from rapidfuzz import fuzz, process

from name_verifier.config.loader import ReferenceData
from name_verifier.models.verification import NameType
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.text_normalizer import normalize_name

_SCORE_CUTOFF = 60
_MAX_RESULTS = 5


class FamousArtistsSource(BaseSourceAdapter):
    _SOURCE_ID = "famous"
    _RELIABILITY = 0.9

    def __init__(
        self,
        reference_data: ReferenceData,
        scorer: SimilarityScorer,
        timeout_seconds: float = 1.0,
    ) -> None:
        super().__init__(scorer, timeout_seconds=timeout_seconds, retries=0)
        self._names = sorted(reference_data.famous_artists)

    def is_available(self) -> bool:
        return bool(self._names)

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        results = process.extract(
            name,
            self._names,
            scorer=fuzz.token_sort_ratio,
            processor=normalize_name,
            score_cutoff=_SCORE_CUTOFF,
            limit=_MAX_RESULTS,
        )
        hits = [
            SourceHit(name=match.title(), popularity=100.0)
            for match, _score, _index in results
        ]
        return hits, len(hits)
