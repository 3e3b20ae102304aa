"""Utility modules for the name verifier.

- **confidence** -- confidence level mapping and weighted scoring math.
- **errors** -- exception hierarchy rooted at NameVerifierError, the
  ErrorCode taxonomy and ``classify_error``.
- **concurrency** -- semaphore-bounded gather and chunked gather helpers.
- **logging** -- structlog setup with console/JSON renderers.
- **retry** -- retry-with-backoff for transient source failures.
- **text_normalizer** -- name normalization and the result-cache key.
"""

from name_verifier.utils.concurrency import gather_in_chunks, throttled_gather
from name_verifier.utils.confidence import (
    ConfidenceLevel,
    confidence_to_level,
    dampen_confidence,
    weighted_confidence,
)
from name_verifier.utils.errors import (
    CacheError,
    CircuitOpenError,
    ConfigurationError,
    ErrorCode,
    InvalidInputError,
    NameVerifierError,
    PlatformError,
    PlatformTimeoutError,
    RateLimitError,
    VerificationError,
    classify_error,
)
from name_verifier.utils.logging import configure_logging, get_logger
from name_verifier.utils.retry import retry_async
from name_verifier.utils.text_normalizer import (
    cache_key,
    compact_letters,
    normalize_name,
)

__all__ = [
    "CacheError",
    "CircuitOpenError",
    "ConfidenceLevel",
    "ConfigurationError",
    "ErrorCode",
    "InvalidInputError",
    "NameVerifierError",
    "PlatformError",
    "PlatformTimeoutError",
    "RateLimitError",
    "VerificationError",
    "cache_key",
    "classify_error",
    "compact_letters",
    "confidence_to_level",
    "configure_logging",
    "dampen_confidence",
    "gather_in_chunks",
    "get_logger",
    "normalize_name",
    "retry_async",
    "throttled_gather",
    "weighted_confidence",
]
