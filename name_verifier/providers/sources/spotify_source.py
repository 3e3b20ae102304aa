"""Spotify Web API source.

Uses the client-credentials flow: a bearer token is fetched from the
accounts service, cached until shortly before it expires, and refreshed
once on a 401.  Bands are searched as ``type=artist``; songs as
``type=track`` with the first credited artist kept on each match.

Spotify is the primary streaming catalog and carries reliability 1.0.
"""

from __future__ import annotations

import time

import httpx

from name_verifier.config.settings import Settings
from name_verifier.models.verification import NameType
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.errors import PlatformError, RateLimitError

_TOKEN_URL = "https://accounts.spotify.com/api/token"
_SEARCH_URL = "https://api.spotify.com/v1/search"
_SEARCH_LIMIT = 10
_TOKEN_EXPIRY_MARGIN = 30


class SpotifySource(BaseSourceAdapter):
    """Spotify catalog search.  The ``httpx.AsyncClient`` is injected for testability."""

    _SOURCE_ID = "spotify"
    _RELIABILITY = 1.0

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        scorer: SimilarityScorer,
    ) -> None:
        super().__init__(
            scorer,
            timeout_seconds=settings.spotify_timeout_seconds,
            retries=settings.source_retry_attempts,
            backoff_seconds=settings.source_retry_backoff_seconds,
        )
        self._http = http_client
        self._client_id = settings.spotify_client_id
        self._client_secret = settings.spotify_client_secret
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    def is_available(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _get_token(self, force_refresh: bool = False) -> str:
        now = time.monotonic()
        if not force_refresh and self._token and now < self._token_expires_at:
            return self._token

        response = await self._http.post(
            _TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self._client_id, self._client_secret),
        )
        if response.status_code == 429:
            raise RateLimitError("Spotify token endpoint rate limited", provider_name=self.source_id)
        response.raise_for_status()

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise PlatformError(
                "Spotify token response had no access_token",
                provider_name=self.source_id,
                retryable=False,
            )
        expires_in = int(payload.get("expires_in") or 0)
        self._token = token
        self._token_expires_at = now + max(0, expires_in - _TOKEN_EXPIRY_MARGIN)
        self._logger.debug("spotify_token_refreshed", expires_in=expires_in)
        return token

    async def _request(self, params: dict[str, str | int]) -> dict:
        token = await self._get_token()
        response = await self._http.get(
            _SEARCH_URL, params=params, headers={"Authorization": f"Bearer {token}"}
        )
        if response.status_code == 401:
            token = await self._get_token(force_refresh=True)
            response = await self._http.get(
                _SEARCH_URL, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        if response.status_code == 429:
            raise RateLimitError(
                f"Spotify rate limited (retry after {response.headers.get('Retry-After', '?')}s)",
                provider_name=self.source_id,
            )
        response.raise_for_status()
        return response.json()

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        if not self.is_available():
            raise PlatformError(
                "Spotify credentials are not configured",
                provider_name=self.source_id,
                retryable=False,
            )

        search_type = "artist" if name_type is NameType.BAND else "track"
        payload = await self._request({"q": name, "type": search_type, "limit": _SEARCH_LIMIT})
        section = payload.get(f"{search_type}s") or {}

        hits: list[SourceHit] = []
        for item in section.get("items") or []:
            if not item:
                continue
            artist: str | None = None
            if search_type == "track":
                artists = [a.get("name") for a in item.get("artists") or [] if a.get("name")]
                artist = artists[0] if artists else None
            hits.append(
                SourceHit(
                    name=item.get("name", ""),
                    artist=artist,
                    popularity=item.get("popularity"),
                    genres=tuple(item.get("genres") or ()),
                    url=(item.get("external_urls") or {}).get("spotify"),
                )
            )

        return hits, int(section.get("total") or len(hits))
