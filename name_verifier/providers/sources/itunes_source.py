"""iTunes Search API source (Apple Music catalog).

No API key required.  Bands are searched with ``entity=musicArtist`` and
songs with ``entity=song``.  The API reports no popularity, so matches
carry ``popularity=None``.
"""

from __future__ import annotations

import httpx

from name_verifier.config.settings import Settings
from name_verifier.models.verification import NameType
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.errors import RateLimitError

_SEARCH_URL = "https://itunes.apple.com/search"
_SEARCH_LIMIT = 10


class ITunesSource(BaseSourceAdapter):
    _SOURCE_ID = "itunes"
    _RELIABILITY = 0.9

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        scorer: SimilarityScorer,
    ) -> None:
        super().__init__(
            scorer,
            timeout_seconds=settings.itunes_timeout_seconds,
            retries=settings.source_retry_attempts,
            backoff_seconds=settings.source_retry_backoff_seconds,
        )
        self._http = http_client
        self._country = settings.itunes_country

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        entity = "musicArtist" if name_type is NameType.BAND else "song"
        params = {
            "term": name,
            "entity": entity,
            "limit": _SEARCH_LIMIT,
            "country": self._country,
        }
        response = await self._http.get(_SEARCH_URL, params=params)
        if response.status_code in (403, 429):
            raise RateLimitError(
                f"iTunes search throttled (HTTP {response.status_code})",
                provider_name=self.source_id,
            )
        response.raise_for_status()
        payload = response.json()

        hits: list[SourceHit] = []
        for item in payload.get("results") or []:
            if name_type is NameType.BAND:
                hits.append(
                    SourceHit(
                        name=item.get("artistName", ""),
                        genres=tuple(g for g in [item.get("primaryGenreName")] if g),
                        url=item.get("artistLinkUrl"),
                    )
                )
            else:
                hits.append(
                    SourceHit(
                        name=item.get("trackName", ""),
                        artist=item.get("artistName"),
                        genres=tuple(g for g in [item.get("primaryGenreName")] if g),
                        url=item.get("trackViewUrl"),
                    )
                )

        return hits, int(payload.get("resultCount") or len(hits))
