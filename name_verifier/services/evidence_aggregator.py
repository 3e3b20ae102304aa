"""Merges per-source evidence into one aggregated record per name.

Architecture overview
---------------------
Each source adapter reports its own :class:`PlatformEvidence`.  Different
catalogs frequently return the *same* real-world entity ("Radiohead" on
Spotify, iTunes and MusicBrainz), so the aggregator:

1. Collects every match from every source that succeeded.
2. Deduplicates matches that describe the same entity.  Two matches are
   the same entity when their normalized names are near-identical AND
   either the artists agree (when both are known) or the similarity to
   the candidate is >= 0.92.  The surviving match is the one from the
   most reliable source; genres are unioned and the highest popularity
   is kept.
3. Grades the *process* of gathering evidence (``aggregation_quality``):

       high    >= 2 sources succeeded and they do not disagree sharply
       medium  exactly 1 source succeeded
       low     no source succeeded, or sources disagree sharply

   "Sharp disagreement" means one source reports an exact match while
   another successful source of comparable reliability (within 0.1)
   returned nothing at all.
"""

from __future__ import annotations

from rapidfuzz import fuzz

from name_verifier.models.verification import (
    AggregatedEvidence,
    AggregationQuality,
    MatchType,
    PlatformEvidence,
    PlatformMatch,
)
from name_verifier.utils.logging import get_logger
from name_verifier.utils.text_normalizer import normalize_name

logger = get_logger(__name__)

DEDUP_SIMILARITY_THRESHOLD = 0.92
_NEAR_IDENTICAL_NAME = 95.0
_COMPARABLE_RELIABILITY = 0.1
_MAX_MATCHES_PER_CATEGORY = 20

_MATCH_TYPE_RANK = {
    MatchType.EXACT: 4,
    MatchType.PHONETIC: 3,
    MatchType.PARTIAL: 2,
    MatchType.FUZZY: 1,
    MatchType.NONE: 0,
}


class EvidenceAggregator:
    """Stateless merger of per-source evidence."""

    def aggregate(self, per_source: dict[str, PlatformEvidence]) -> AggregatedEvidence:
        """Combine *per_source* evidence into one :class:`AggregatedEvidence`.

        Parameters
        ----------
        per_source:
            Evidence keyed by source id, in query order.
        """
        succeeded = [sid for sid, ev in per_source.items() if ev.available]
        failed = [sid for sid, ev in per_source.items() if not ev.available]

        reliability = {sid: ev.reliability for sid, ev in per_source.items()}
        raw = [m for sid in succeeded for m in per_source[sid].matches]
        merged = self._deduplicate(raw, reliability)
        merged.sort(key=_match_sort_key, reverse=True)

        exact = [m for m in merged if m.is_exact_match]
        similar_keys = {
            (m.source_id, m.name)
            for sid in succeeded
            for m in per_source[sid].similar_matches
        }
        similar = [
            m
            for m in merged
            if not m.is_exact_match
            and (
                (m.source_id, m.name) in similar_keys
                or m.match_type in (MatchType.PHONETIC, MatchType.PARTIAL)
            )
        ]

        highest = max((m.similarity for m in merged), default=0.0)
        avg_reliability = (
            sum(per_source[sid].reliability for sid in succeeded) / len(succeeded)
            if succeeded
            else 0.0
        )
        quality = self._quality(per_source, succeeded)

        logger.debug(
            "evidence_aggregated",
            queried=len(per_source),
            succeeded=len(succeeded),
            raw_matches=len(raw),
            merged_matches=len(merged),
            exact=len(exact),
            quality=quality.value,
        )

        return AggregatedEvidence(
            all_matches=merged,
            exact_matches=exact[:_MAX_MATCHES_PER_CATEGORY],
            similar_matches=similar[:_MAX_MATCHES_PER_CATEGORY],
            per_source_evidence=dict(per_source),
            highest_similarity=highest,
            average_reliability=avg_reliability,
            sources_queried=list(per_source),
            sources_succeeded=succeeded,
            sources_failed=failed,
            aggregation_quality=quality,
        )

    # ------------------------------------------------------------------
    # Deduplication
    # ------------------------------------------------------------------

    @staticmethod
    def same_entity(a: PlatformMatch, b: PlatformMatch) -> bool:
        """Return ``True`` when *a* and *b* describe the same real-world entity."""
        name_a, name_b = normalize_name(a.name), normalize_name(b.name)
        if not name_a or not name_b:
            return False
        if fuzz.ratio(name_a, name_b) < _NEAR_IDENTICAL_NAME:
            return False
        if a.artist and b.artist:
            return normalize_name(a.artist) == normalize_name(b.artist)
        return min(a.similarity, b.similarity) >= DEDUP_SIMILARITY_THRESHOLD

    def _deduplicate(
        self, matches: list[PlatformMatch], reliability: dict[str, float]
    ) -> list[PlatformMatch]:
        groups: list[list[PlatformMatch]] = []
        for match in matches:
            for group in groups:
                if self.same_entity(group[0], match):
                    group.append(match)
                    break
            else:
                groups.append([match])
        return [self._merge_group(group, reliability) for group in groups]

    @staticmethod
    def _merge_group(group: list[PlatformMatch], reliability: dict[str, float]) -> PlatformMatch:
        if len(group) == 1:
            return group[0]

        best = max(group, key=lambda m: (reliability.get(m.source_id, 0.0), m.similarity))
        genres: list[str] = []
        for match in group:
            for genre in match.genres:
                if genre not in genres:
                    genres.append(genre)
        popularities = [m.popularity for m in group if m.popularity is not None]
        return best.model_copy(
            update={
                "genres": genres,
                "popularity": max(popularities) if popularities else None,
                "artist": best.artist or next((m.artist for m in group if m.artist), None),
                "url": best.url or next((m.url for m in group if m.url), None),
            }
        )

    # ------------------------------------------------------------------
    # Quality
    # ------------------------------------------------------------------

    @staticmethod
    def _quality(
        per_source: dict[str, PlatformEvidence], succeeded: list[str]
    ) -> AggregationQuality:
        if not succeeded:
            return AggregationQuality.LOW

        exact_sources = [sid for sid in succeeded if per_source[sid].exact_matches]
        empty_sources = [sid for sid in succeeded if not per_source[sid].matches]
        for exact_sid in exact_sources:
            exact_rel = per_source[exact_sid].reliability
            for empty_sid in empty_sources:
                if per_source[empty_sid].reliability >= exact_rel - _COMPARABLE_RELIABILITY:
                    logger.info(
                        "evidence_disagreement",
                        exact_source=exact_sid,
                        empty_source=empty_sid,
                    )
                    return AggregationQuality.LOW

        if len(succeeded) >= 2:
            return AggregationQuality.HIGH
        return AggregationQuality.MEDIUM


def _match_sort_key(match: PlatformMatch) -> tuple[int, float, float]:
    return (
        _MATCH_TYPE_RANK[match.match_type],
        match.similarity,
        match.popularity or 0.0,
    )
