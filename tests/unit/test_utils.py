"""Unit tests for name_verifier.utils: errors, confidence math, text, retry, concurrency, logging."""

from __future__ import annotations

import asyncio
import io
import json
import logging
from collections.abc import Iterator

import httpx
import pytest

from name_verifier.utils.concurrency import gather_in_chunks, throttled_gather
from name_verifier.utils.confidence import (
    ConfidenceLevel,
    confidence_to_level,
    dampen_confidence,
    weighted_confidence,
)
from name_verifier.utils.errors import (
    ErrorCode,
    InvalidInputError,
    PlatformError,
    PlatformTimeoutError,
    RateLimitError,
    VerificationError,
    classify_error,
)
from name_verifier.utils.logging import configure_logging, get_logger
from name_verifier.utils.retry import retry_async
from name_verifier.utils.text_normalizer import cache_key, compact_letters, normalize_name


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test/search")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


# ======================================================================
# Errors
# ======================================================================


class TestErrors:
    def test_str_includes_provider(self) -> None:
        err = RateLimitError("slow down", provider_name="spotify")
        assert str(err) == "[spotify] slow down"
        assert err.code is ErrorCode.RATE_LIMITED
        assert err.retryable is False

    def test_invalid_input_is_not_retryable(self) -> None:
        err = InvalidInputError("bad name")
        assert err.code is ErrorCode.INVALID_INPUT
        assert err.retryable is False

    def test_classified_errors_pass_through(self) -> None:
        err = PlatformTimeoutError("late", provider_name="itunes")
        assert classify_error(err, "itunes") is err

    def test_classify_timeout(self) -> None:
        result = classify_error(asyncio.TimeoutError(), "spotify")
        assert isinstance(result, PlatformTimeoutError)
        assert result.retryable is True
        assert result.provider_name == "spotify"

    def test_classify_http_429(self) -> None:
        assert isinstance(classify_error(_status_error(429)), RateLimitError)

    def test_classify_http_5xx_is_retryable(self) -> None:
        result = classify_error(_status_error(503))
        assert isinstance(result, PlatformError)
        assert result.retryable is True

    def test_classify_http_4xx_is_not_retryable(self) -> None:
        result = classify_error(_status_error(404))
        assert result.code is ErrorCode.PLATFORM_ERROR
        assert result.retryable is False

    def test_classify_http_400_is_invalid_input(self) -> None:
        assert classify_error(_status_error(400)).code is ErrorCode.INVALID_INPUT

    def test_classify_transport_error(self) -> None:
        result = classify_error(httpx.ConnectError("refused"))
        assert isinstance(result, PlatformError)
        assert result.retryable is True

    def test_classify_by_message(self) -> None:
        assert classify_error(RuntimeError("request timed out")).code is ErrorCode.PLATFORM_TIMEOUT
        assert classify_error(RuntimeError("rate limit hit")).code is ErrorCode.RATE_LIMITED
        assert classify_error(RuntimeError("invalid query")).code is ErrorCode.INVALID_INPUT

    def test_classify_unknown(self) -> None:
        result = classify_error(ValueError("boom"))
        assert type(result) is VerificationError
        assert result.code is ErrorCode.UNKNOWN_ERROR


# ======================================================================
# Confidence math
# ======================================================================


class TestConfidenceMath:
    def test_single_full_reliability_source(self) -> None:
        assert weighted_confidence([0.9], [1.0]) == pytest.approx(0.9)

    def test_low_weight_never_normalized_up(self) -> None:
        # Normalized by max(total weight, 1.0)
        assert weighted_confidence([0.85], [0.7]) == pytest.approx(0.595)

    def test_multiple_sources(self) -> None:
        result = weighted_confidence([0.9, 0.85], [1.0, 0.9])
        assert result == pytest.approx((0.9 + 0.765) / 1.9)

    def test_empty_is_zero(self) -> None:
        assert weighted_confidence([], []) == 0.0

    def test_mismatched_lengths_raise(self) -> None:
        with pytest.raises(ValueError, match="same length"):
            weighted_confidence([0.5], [1.0, 1.0])

    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (0.95, ConfidenceLevel.VERY_HIGH),
            (0.9, ConfidenceLevel.VERY_HIGH),
            (0.8, ConfidenceLevel.HIGH),
            (0.6, ConfidenceLevel.MEDIUM),
            (0.3, ConfidenceLevel.LOW),
            (0.1, ConfidenceLevel.VERY_LOW),
        ],
    )
    def test_levels(self, score: float, level: ConfidenceLevel) -> None:
        assert confidence_to_level(score) is level

    def test_dampen_caps_at_ceiling(self) -> None:
        assert dampen_confidence(0.9) == pytest.approx(0.6)
        assert dampen_confidence(0.5) == pytest.approx(0.35)


# ======================================================================
# Text normalization
# ======================================================================


class TestNormalizeName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("The Beatles", "beatles"),
            ("  RADIOHEAD  ", "radiohead"),
            ("Fennel Collective", "fennel"),
            ("The", "the"),
            ("AC/DC", "ac dc"),
            ("Guns N' Roses", "guns n roses"),
            ("Simon & Garfunkel", "simon and garfunkel"),
            ("Run-DMC", "run dmc"),
            ("Hello, World!", "hello world"),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_name(raw) == expected

    def test_cache_key_trims_and_lowercases(self) -> None:
        assert cache_key("  Radiohead ", "band") == "radiohead:band"
        assert cache_key("Radiohead", "song") != cache_key("Radiohead", "band")

    def test_compact_letters(self) -> None:
        assert compact_letters("Name-Jam!") == "namejam"
        assert compact_letters("n a m e j a m") == "namejam"


# ======================================================================
# Retry
# ======================================================================


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_retryable_error_then_succeeds(self) -> None:
        attempts = 0

        async def _op() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise PlatformError("flaky")
            return "ok"

        assert await retry_async(_op, retries=1, backoff_seconds=0.0) == "ok"
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self) -> None:
        attempts = 0

        async def _op() -> str:
            nonlocal attempts
            attempts += 1
            raise PlatformError("down")

        with pytest.raises(PlatformError):
            await retry_async(_op, retries=1, backoff_seconds=0.0)
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_retried(self) -> None:
        attempts = 0

        async def _op() -> str:
            nonlocal attempts
            attempts += 1
            raise RateLimitError()

        with pytest.raises(RateLimitError):
            await retry_async(_op, retries=3, backoff_seconds=0.0)
        assert attempts == 1

    @pytest.mark.asyncio
    async def test_unclassified_errors_are_wrapped(self) -> None:
        async def _op() -> str:
            raise ValueError("weird payload")

        with pytest.raises(VerificationError) as exc_info:
            await retry_async(_op, retries=2, backoff_seconds=0.0, source_id="itunes")
        assert exc_info.value.provider_name == "itunes"
        assert isinstance(exc_info.value.__cause__, ValueError)


# ======================================================================
# Concurrency
# ======================================================================


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_throttled_gather_bounds_concurrency_and_keeps_order(self) -> None:
        running = 0
        peak = 0

        async def _work(value: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01 * (5 - value))
            running -= 1
            return value

        results = await throttled_gather([_work(i) for i in range(5)], asyncio.Semaphore(2))
        assert results == [0, 1, 2, 3, 4]
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_throttled_gather_returns_exceptions(self) -> None:
        async def _fail() -> int:
            raise RuntimeError("nope")

        async def _ok() -> int:
            return 1

        results = await throttled_gather([_ok(), _fail()], asyncio.Semaphore(1))
        assert results[0] == 1
        assert isinstance(results[1], RuntimeError)

    @pytest.mark.asyncio
    async def test_gather_in_chunks_runs_chunk_by_chunk(self) -> None:
        started: list[int] = []

        def _factory(value: int):
            async def _run() -> int:
                started.append(value)
                await asyncio.sleep(0)
                return value * 10

            return _run

        results = await gather_in_chunks([_factory(i) for i in range(5)], chunk_size=2)
        assert results == [0, 10, 20, 30, 40]
        assert sorted(started[:2]) == [0, 1]
        assert sorted(started[2:4]) == [2, 3]

    @pytest.mark.asyncio
    async def test_gather_in_chunks_rejects_zero_chunk(self) -> None:
        with pytest.raises(ValueError, match="chunk_size"):
            await gather_in_chunks([], chunk_size=0)


# ======================================================================
# Logging
# ======================================================================


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self) -> Iterator[None]:
        yield
        configure_logging()

    def test_json_lines_go_to_the_given_stream(self) -> None:
        stream = io.StringIO()
        configure_logging("INFO", json_output=True, stream=stream)

        get_logger("tests.logging").info("cache_hit", key="velvet harbor:band")
        logging.getLogger("tests.stdlib").warning("stdlib_event")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[0]["event"] == "cache_hit"
        assert lines[0]["key"] == "velvet harbor:band"
        assert lines[0]["level"] == "info"
        assert "timestamp" in lines[0]
        assert lines[1]["event"] == "stdlib_event"

    def test_level_filters_events(self) -> None:
        stream = io.StringIO()
        configure_logging("WARNING", json_output=True, stream=stream)
        get_logger("tests.logging").info("dropped")
        assert stream.getvalue() == ""

    def test_http_loggers_are_quiet_unless_debugging(self) -> None:
        configure_logging("INFO", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("musicbrainzngs").level == logging.WARNING

        configure_logging("DEBUG", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.DEBUG
