"""Retry helper for source adapter calls.

Retries a failing async operation with linear backoff
(``backoff_seconds * attempt``) but only for errors classified as
retryable.  Rate limiting and 4xx client errors are raised immediately:
a rate-limited source is skipped for this cycle rather than hammered.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from name_verifier.utils.errors import classify_error
from name_verifier.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def retry_async(
    operation: Callable[[], Awaitable[_T]],
    *,
    retries: int = 1,
    backoff_seconds: float = 0.5,
    source_id: str | None = None,
) -> _T:
    """Await ``operation()``, retrying up to *retries* extra times.

    Parameters
    ----------
    operation:
        Zero-argument factory returning a fresh awaitable per attempt.
    retries:
        Number of retries after the first attempt.
    backoff_seconds:
        Base backoff.  Attempt *n* waits ``backoff_seconds * n`` before
        the next try.
    source_id:
        Source name used for error classification and log context.

    Raises
    ------
    VerificationError
        The classified error of the last attempt, or of the first
        non-retryable failure.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as exc:
            error = classify_error(exc, source_id)
            if not error.retryable or attempt > retries:
                if error is exc:
                    raise
                raise error from exc

            backoff = backoff_seconds * attempt
            _logger.warning(
                "source_retry",
                source=source_id,
                attempt=attempt,
                code=error.code.value,
                backoff_s=backoff,
            )
            await asyncio.sleep(backoff)
