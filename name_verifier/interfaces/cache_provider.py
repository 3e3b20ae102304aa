"""Abstract base class for the verification result cache.

The engine caches finished ``VerificationResult`` objects keyed by the
normalized ``(name, type)`` pair, each with its own outcome-dependent TTL.
Implementations may keep entries in process memory or in a shared store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from name_verifier.models.verification import CacheEntry, VerificationResult


class ICacheProvider(ABC):
    """Contract for the result cache.

    All operations are async so a network-backed store can be swapped in
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str, max_age: float | None = None) -> CacheEntry | None:
        """Return the live entry stored under *key*.

        Parameters
        ----------
        key:
            Cache key from ``cache_key(name, type)``.
        max_age:
            Optional upper bound on the entry's age in seconds.  Older
            entries are treated as a miss.

        Returns
        -------
        CacheEntry or None
            The entry if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(
        self,
        key: str,
        result: VerificationResult,
        ttl: int,
        written_after: float | None = None,
    ) -> CacheEntry | None:
        """Store *result* under *key* for *ttl* seconds.

        A ``ttl`` of 0 means "do not cache"; the call is a no-op and
        returns ``None``.  If *written_after* is given and a live entry
        created after that time exists, the existing entry is kept
        and returned.
        """

    @abstractmethod
    def now(self) -> float:
        """Current time on the cache's clock (comparable to ``created_at``)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; no-op if absent."""

    @abstractmethod
    async def sweep(self) -> int:
        """Drop expired entries and return how many were removed."""

    @abstractmethod
    def stats(self) -> dict[str, float]:
        """Return hit/miss counters, current size and hit rate."""
