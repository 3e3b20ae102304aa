"""Bandcamp web-scraping source.

Scrapes the bandcamp.com search page: ``item_type=b`` for bands and
``item_type=t`` for tracks.  No API key required.  Requests are spaced
out with a short delay and carry a proper User-Agent header.  Bandcamp is
strong for independent artists, so it carries reliability 0.8.
"""

from __future__ import annotations

import asyncio
import re
import time

import httpx
from bs4 import BeautifulSoup

from name_verifier.config.settings import Settings
from name_verifier.models.verification import NameType
from name_verifier.providers.sources.base_source import USER_AGENT, BaseSourceAdapter, SourceHit
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.errors import PlatformError, RateLimitError

_SEARCH_URL = "https://bandcamp.com/search"
_SCRAPE_DELAY = 0.5
_MAX_SEARCH_RESULTS = 10
_BY_PREFIX_RE = re.compile(r"^\s*by\s+", re.IGNORECASE)


class BandcampSource(BaseSourceAdapter):
    """Bandcamp search scraper.  The ``httpx.AsyncClient`` is injected for testability."""

    _SOURCE_ID = "bandcamp"
    _RELIABILITY = 0.8

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        scorer: SimilarityScorer,
    ) -> None:
        super().__init__(
            scorer,
            timeout_seconds=settings.bandcamp_timeout_seconds,
            retries=settings.source_retry_attempts,
            backoff_seconds=settings.source_retry_backoff_seconds,
        )
        self._http = http_client
        self._last_request_time: float = 0.0

    async def _throttle(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < _SCRAPE_DELAY:
            await asyncio.sleep(_SCRAPE_DELAY - elapsed)
        self._last_request_time = time.monotonic()

    async def _fetch_page(self, params: dict[str, str]) -> BeautifulSoup:
        await self._throttle()
        response = await self._http.get(
            _SEARCH_URL,
            params=params,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        if response.status_code in (403, 429):
            raise RateLimitError(
                f"Bandcamp refused search (HTTP {response.status_code})",
                provider_name=self.source_id,
            )
        if response.status_code >= 500:
            raise PlatformError(
                f"Bandcamp server error (HTTP {response.status_code})",
                provider_name=self.source_id,
            )
        response.raise_for_status()
        return BeautifulSoup(response.text, "html.parser")

    async def _search(self, name: str, name_type: NameType) -> tuple[list[SourceHit], int]:
        item_type = "b" if name_type is NameType.BAND else "t"
        soup = await self._fetch_page({"q": name, "item_type": item_type})

        selector = ".searchresult.band" if name_type is NameType.BAND else ".searchresult.track"
        hits: list[SourceHit] = []
        seen_urls: set[str] = set()

        for item in soup.select(selector):
            heading = item.select_one(".heading a")
            if not heading:
                continue

            title = heading.get_text(strip=True)
            url = heading.get("href", "").split("?")[0].rstrip("/")
            if not title or url in seen_urls:
                continue
            seen_urls.add(url)

            artist: str | None = None
            if name_type is NameType.SONG:
                subhead = item.select_one(".subhead")
                if subhead:
                    # "from Album by Artist" -> "Artist"
                    text = subhead.get_text(" ", strip=True)
                    artist = _BY_PREFIX_RE.sub("", text.rsplit(" by ", 1)[-1]).strip() or None

            genre_el = item.select_one(".genre")
            genres: tuple[str, ...] = ()
            if genre_el:
                genre = genre_el.get_text(strip=True).replace("genre:", "").strip()
                genres = (genre,) if genre else ()

            hits.append(SourceHit(name=title, artist=artist, genres=genres, url=url or None))
            if len(hits) >= _MAX_SEARCH_RESULTS:
                break

        self._logger.debug("bandcamp_search_parsed", name=name, results=len(hits))
        return hits, len(hits)
