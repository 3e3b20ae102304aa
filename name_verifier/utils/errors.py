"""Custom exception hierarchy for the name verifier.

All application exceptions inherit from :class:`NameVerifierError`, which
carries an optional ``provider_name`` so handlers can tell which external
source (e.g. "spotify", "musicbrainz") caused the failure.

The hierarchy is organized by where the failure happens:

    NameVerifierError  (base -- catch-all)
    +-- ConfigurationError        (startup / invalid settings)
    +-- VerificationError         (carries ErrorCode + retryable flag)
        +-- InvalidInputError     (malformed name/type, caller-visible)
        +-- PlatformTimeoutError  (a source call exceeded its timeout)
        +-- PlatformError         (non-timeout failure from a source)
        +-- RateLimitError        (source answered 429 / rate limit)
        +-- CircuitOpenError      (breaker rejected the call)
        +-- CacheError            (result cache failure)

Source adapters never let these escape: they are converted into a degraded
``PlatformEvidence`` at the adapter boundary, and the coordinator turns
result-cache failures into a logged ``CacheError`` and a cache miss.  Only
``InvalidInputError`` is meant to reach a request caller;
``ConfigurationError`` stops startup.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx


class ErrorCode(str, Enum):  # noqa: UP042
    """Error taxonomy shared by adapters, the coordinator and the API."""

    PLATFORM_TIMEOUT = "PLATFORM_TIMEOUT"
    PLATFORM_ERROR = "PLATFORM_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_INPUT = "INVALID_INPUT"
    CACHE_ERROR = "CACHE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class NameVerifierError(Exception):
    """Base exception for all name verifier errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[spotify] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(NameVerifierError):
    """Raised when required configuration is missing or inconsistent."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Verification errors (typed, with retry semantics)
# ---------------------------------------------------------------------------


class VerificationError(NameVerifierError):
    """A classified failure with an :class:`ErrorCode` and retry hint."""

    def __init__(
        self,
        message: str = "Verification failed",
        provider_name: str | None = None,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._code = code
        self._retryable = retryable

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def retryable(self) -> bool:
        return self._retryable


class InvalidInputError(VerificationError):
    """Raised before any network work when a name or type is malformed."""

    def __init__(
        self,
        message: str = "Invalid verification input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.INVALID_INPUT,
            retryable=False,
        )


class PlatformTimeoutError(VerificationError):
    """Raised when a source call does not complete within its timeout."""

    def __init__(
        self,
        message: str = "Source request timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.PLATFORM_TIMEOUT,
            retryable=True,
        )


class PlatformError(VerificationError):
    """Raised on a non-timeout source failure (HTTP error, bad payload)."""

    def __init__(
        self,
        message: str = "Source request failed",
        provider_name: str | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.PLATFORM_ERROR,
            retryable=retryable,
        )


class RateLimitError(VerificationError):
    """Raised when a source reports rate limiting.  Never retried in-cycle."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.RATE_LIMITED,
            retryable=False,
        )


class CircuitOpenError(VerificationError):
    """Raised by a circuit breaker that short-circuits a call while OPEN."""

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.PLATFORM_ERROR,
            retryable=False,
        )


class CacheError(VerificationError):
    """Raised when the result cache cannot be read or written."""

    def __init__(
        self,
        message: str = "Result cache failure",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            code=ErrorCode.CACHE_ERROR,
            retryable=False,
        )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_error(exc: BaseException, source_id: str | None = None) -> VerificationError:
    """Map an arbitrary exception raised by a source call to a typed error.

    Already-classified errors pass through unchanged.  HTTP status errors
    are classified by status code; everything else falls back to message
    inspection.
    """
    if isinstance(exc, VerificationError):
        return exc

    message = str(exc) or type(exc).__name__

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return PlatformTimeoutError(message=message, provider_name=source_id)

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429:
            return RateLimitError(message=message, provider_name=source_id)
        if status == 400:
            return VerificationError(
                message=message,
                provider_name=source_id,
                code=ErrorCode.INVALID_INPUT,
                retryable=False,
            )
        # Other 4xx are client errors: retrying will not help.
        return PlatformError(message=message, provider_name=source_id, retryable=status >= 500)

    if isinstance(exc, httpx.TransportError):
        return PlatformError(message=message, provider_name=source_id, retryable=True)

    lowered = message.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return PlatformTimeoutError(message=message, provider_name=source_id)
    if "rate limit" in lowered or "429" in lowered:
        return RateLimitError(message=message, provider_name=source_id)
    if "invalid" in lowered or "400" in lowered:
        return VerificationError(
            message=message,
            provider_name=source_id,
            code=ErrorCode.INVALID_INPUT,
            retryable=False,
        )

    return VerificationError(
        message=message,
        provider_name=source_id,
        code=ErrorCode.UNKNOWN_ERROR,
        retryable=False,
    )
