"""In-memory verification result cache using cachetools.TLRUCache.

Each entry carries its own TTL (chosen by the decision engine), which
``TLRUCache`` honours through a time-to-use callback.  When the cache is
full, expired entries go first, then the least recently used one.  A
background sweep task drops expired entries periodically so memory is
released even for keys that are never read again.

The cache is process-wide state with no required teardown; it is built
once in ``main.py`` and injected wherever it is needed.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Callable

import structlog
from cachetools import TLRUCache

from name_verifier.interfaces.cache_provider import ICacheProvider
from name_verifier.models.verification import CacheEntry, VerificationResult

logger = structlog.get_logger(logger_name=__name__)


def _entry_expiry(_key: str, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl_seconds


class MemoryResultCache(ICacheProvider):
    """Outcome-aware result cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_entries:
        Maximum number of cached results.
    clock:
        Monotonic time source shared with the TTL computation.  Tests
        inject a fake clock to expire entries without sleeping.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._cache: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max_entries, ttu=_entry_expiry, timer=clock
        )
        self._hits = 0
        self._misses = 0
        self._sweeper: asyncio.Task[None] | None = None

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str, max_age: float | None = None) -> CacheEntry | None:
        """Return the live entry for *key*, or ``None`` if missing, expired or too old."""
        entry = self._cache.get(key)
        if entry is not None and max_age is not None and self._clock() - entry.created_at > max_age:
            entry = None

        if entry is None:
            self._misses += 1
            logger.debug("cache_miss", key=key)
            return None

        self._hits += 1
        logger.debug("cache_hit", key=key)
        return entry

    async def set(
        self,
        key: str,
        result: VerificationResult,
        ttl: int,
        written_after: float | None = None,
    ) -> CacheEntry | None:
        """Store *result* under *key* for *ttl* seconds.

        ``ttl == 0`` is a no-op.  When *written_after* is given and a live
        entry created after that time already exists, the existing
        entry wins and is returned unchanged; a concurrent request for the
        same key finished first and its result must not be clobbered.
        """
        if ttl <= 0:
            logger.debug("cache_skip", key=key, reason="ttl_zero")
            return None

        if written_after is not None:
            existing = self._cache.get(key)
            if existing is not None and existing.created_at > written_after:
                logger.debug("cache_keep_newer", key=key)
                return existing

        entry = CacheEntry(result=result, created_at=self._clock(), ttl_seconds=ttl)
        self._cache[key] = entry
        logger.debug("cache_set", key=key, ttl=ttl, status=result.status.value)
        return entry

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def sweep(self) -> int:
        removed = len(self._cache.expire())
        if removed:
            logger.info("cache_sweep", removed=removed, remaining=len(self._cache))
        return removed

    def stats(self) -> dict[str, float]:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._cache),
            "max_entries": self._cache.maxsize,
            "hit_rate": (self._hits / total) if total else 0.0,
        }

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start_sweeper(self, interval_seconds: float) -> None:
        """Start the periodic sweep task on the running loop (idempotent)."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop(interval_seconds))
        logger.info("cache_sweeper_started", interval_s=interval_seconds)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        logger.info("cache_sweeper_stopped")

    async def _sweep_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            await self.sweep()
