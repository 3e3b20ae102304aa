"""Request-level deduplication for bursts of identical verification calls.

Two layers, both keyed by a hash of the full request payload (method,
path, body and query, serialized with sorted keys so field order never
matters):

1. **In-flight registry** -- while a computation for a key is running,
   later callers with the same key await the same future instead of
   starting another computation.
2. **Burst cache** -- a completed result is kept for a few seconds
   (``dedup_window_seconds``) in a ``cachetools.TTLCache`` so requests
   arriving just after completion are answered without recomputing.

This is separate from the outcome-dependent result cache: the burst cache
lives for seconds and stores whole responses, not per-name verdicts.

If the shared computation fails, the original caller sees the error and
every joined caller runs its own computation instead of inheriting it.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import time
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from cachetools import TTLCache

from name_verifier.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


def request_key(
    method: str,
    path: str,
    body: Any = None,
    query: dict[str, Any] | None = None,
) -> str:
    """Hash a request payload into a dedup key (order-independent)."""
    payload = {
        "method": method.upper(),
        "path": path,
        "body": body,
        "query": query or {},
    }
    encoded = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class RequestDeduplicator:
    """Collapses identical concurrent requests into one computation.

    Parameters
    ----------
    window_seconds:
        How long a completed result is served to identical requests.
    max_entries:
        Maximum number of completed results held.
    clock:
        Time source for the burst cache.  Tests inject a fake.
    """

    def __init__(
        self,
        window_seconds: float = 2.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._completed: TTLCache[str, Any] = TTLCache(
            maxsize=max_entries, ttl=window_seconds, timer=clock
        )
        self._duplicates = 0
        self._computations = 0

    async def run(self, key: str, compute: Callable[[], Awaitable[_T]]) -> _T:
        """Return the result for *key*, computing it at most once per burst."""
        if key in self._completed:
            self._duplicates += 1
            _logger.debug("dedup_cache_hit", key=key)
            return self._completed[key]

        pending = self._pending.get(key)
        if pending is not None:
            self._duplicates += 1
            _logger.debug("dedup_joined", key=key)
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                _logger.info("dedup_shared_cancelled", key=key)
            except Exception as exc:
                _logger.info("dedup_shared_failed", key=key, error=str(exc))
            return await compute()

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        self._computations += 1
        try:
            result = await compute()
        except BaseException as exc:
            if isinstance(exc, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(exc)
                # Retrieved here so an unjoined failure is not reported as unhandled.
                future.exception()
            raise
        else:
            self._completed[key] = result
            future.set_result(result)
            return result
        finally:
            self._pending.pop(key, None)

    def stats(self) -> dict[str, int]:
        self._completed.expire()
        return {
            "pending": len(self._pending),
            "cached": len(self._completed),
            "duplicates": self._duplicates,
            "computations": self._computations,
        }

    def clear(self) -> None:
        self._completed.clear()
