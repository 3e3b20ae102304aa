"""MusicBrainz source.

Uses the musicbrainzngs library against the open MusicBrainz database.
No API key is required, but clients must identify themselves with a
user-agent and respect 1 request/second, enforced here by ``_throttle``.
musicbrainzngs is synchronous, so each query runs in a worker thread.

``ext:score`` (0-100 search relevance) is used as the popularity proxy.
"""

from __future__ import annotations

import asyncio
import time

import musicbrainzngs

from name_verifier.config.settings import Settings
from name_verifier.models.verification import NameType
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.errors import PlatformError, RateLimitError

_SEARCH_LIMIT = 10
_ARTIST_URL = "https://musicbrainz.org/artist/{mbid}"
_RECORDING_URL = "https://musicbrainz.org/recording/{mbid}"


class MusicBrainzSource(BaseSourceAdapter):
    """MusicBrainz search with built-in rate limiting.

    Attributes
    ----------
    _last_request_time : float
        Monotonic timestamp of the most recent query, used for throttling.
    """

    _SOURCE_ID = "musicbrainz"
    _RELIABILITY = 0.7
    _MIN_REQUEST_INTERVAL: float = 1.0

    def __init__(self, settings: Settings, scorer: SimilarityScorer) -> None:
        super().__init__(
            scorer,
            timeout_seconds=settings.musicbrainz_timeout_seconds,
            retries=settings.source_retry_attempts,
            backoff_seconds=settings.source_retry_backoff_seconds,
        )
        self._last_request_time: float = 0.0
        self._lock = asyncio.Lock()

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )
        self._logger.info(
            "musicbrainz_source_initialized",
            app_name=settings.musicbrainz_app_name,
            app_version=settings.musicbrainz_app_version,
        )

    async def _throttle(self) -> None:
        """Enforce the MusicBrainz 1 req/sec rate limit across concurrent calls."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._MIN_REQUEST_INTERVAL:
                await asyncio.sleep(self._MIN_REQUEST_INTERVAL - elapsed)
            self._last_request_time = time.monotonic()

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        await self._throttle()
        try:
            if name_type is NameType.BAND:
                response = await asyncio.to_thread(
                    musicbrainzngs.search_artists, query=name, limit=_SEARCH_LIMIT
                )
            else:
                response = await asyncio.to_thread(
                    musicbrainzngs.search_recordings, recording=name, limit=_SEARCH_LIMIT
                )
        except musicbrainzngs.ResponseError as exc:
            cause = getattr(exc, "cause", None)
            status = getattr(cause, "code", None)
            if status == 503:
                raise RateLimitError(
                    f"MusicBrainz throttled search for '{name}'", provider_name=self.source_id
                ) from exc
            raise PlatformError(
                f"MusicBrainz search failed for '{name}': {exc}",
                provider_name=self.source_id,
                retryable=status is None or status >= 500,
            ) from exc
        except musicbrainzngs.WebServiceError as exc:
            raise PlatformError(
                f"MusicBrainz search failed for '{name}': {exc}",
                provider_name=self.source_id,
            ) from exc

        if name_type is NameType.BAND:
            return self._artist_hits(response)
        return self._recording_hits(response)

    @staticmethod
    def _artist_hits(response: dict) -> tuple[list[SourceHit], int]:
        hits = [
            SourceHit(
                name=artist.get("name", ""),
                popularity=float(artist.get("ext:score", 0) or 0),
                genres=tuple(t.get("name", "") for t in artist.get("tag-list") or [] if t.get("name")),
                url=_ARTIST_URL.format(mbid=artist["id"]) if artist.get("id") else None,
            )
            for artist in response.get("artist-list", [])
        ]
        return hits, int(response.get("artist-count") or len(hits))

    @staticmethod
    def _recording_hits(response: dict) -> tuple[list[SourceHit], int]:
        hits = [
            SourceHit(
                name=recording.get("title", ""),
                artist=recording.get("artist-credit-phrase"),
                popularity=float(recording.get("ext:score", 0) or 0),
                url=_RECORDING_URL.format(mbid=recording["id"]) if recording.get("id") else None,
            )
            for recording in response.get("recording-list", [])
        ]
        return hits, int(response.get("recording-count") or len(hits))
