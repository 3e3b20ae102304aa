"""Unit tests for the per-source circuit breaker state machine."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from name_verifier.services.circuit_breaker import (
    BreakerConfig,
    BreakerSnapshot,
    BreakerState,
    CircuitBreaker,
    CircuitBreakerRegistry,
    allow_request,
    record_failure,
    record_success,
)
from name_verifier.utils.errors import CircuitOpenError, PlatformError
from tests.conftest import FakeClock

_CONFIG = BreakerConfig(
    failure_threshold=3, recovery_timeout=30.0, success_threshold=2, monitoring_window=60.0
)


# ======================================================================
# Pure transitions
# ======================================================================


class TestTransitions:
    def test_closed_allows(self) -> None:
        allowed, snapshot = allow_request(BreakerSnapshot(), _CONFIG, now=0.0)
        assert allowed is True
        assert snapshot.state is BreakerState.CLOSED

    def test_trips_after_threshold_failures(self) -> None:
        snap = BreakerSnapshot()
        for t in (1.0, 2.0):
            snap = record_failure(snap, _CONFIG, t)
            assert snap.state is BreakerState.CLOSED
        snap = record_failure(snap, _CONFIG, 3.0)
        assert snap.state is BreakerState.OPEN
        assert snap.opened_at == 3.0

    def test_failures_outside_window_do_not_count(self) -> None:
        snap = BreakerSnapshot()
        snap = record_failure(snap, _CONFIG, 0.0)
        snap = record_failure(snap, _CONFIG, 1.0)
        snap = record_failure(snap, _CONFIG, 100.0)
        assert snap.state is BreakerState.CLOSED
        assert snap.failure_times == (100.0,)

    def test_open_rejects_until_recovery_timeout(self) -> None:
        snap = BreakerSnapshot(state=BreakerState.OPEN, opened_at=10.0, failure_times=(10.0,))
        allowed, same = allow_request(snap, _CONFIG, now=20.0)
        assert allowed is False
        assert same.state is BreakerState.OPEN

        allowed, probe = allow_request(snap, _CONFIG, now=40.0)
        assert allowed is True
        assert probe.state is BreakerState.HALF_OPEN

    def test_half_open_closes_after_success_threshold(self) -> None:
        snap = BreakerSnapshot(state=BreakerState.HALF_OPEN)
        snap = record_success(snap, _CONFIG, 1.0)
        assert snap.state is BreakerState.HALF_OPEN
        snap = record_success(snap, _CONFIG, 2.0)
        assert snap == BreakerSnapshot()

    def test_half_open_failure_reopens(self) -> None:
        snap = BreakerSnapshot(state=BreakerState.HALF_OPEN, consecutive_successes=1)
        snap = record_failure(snap, _CONFIG, 50.0)
        assert snap.state is BreakerState.OPEN
        assert snap.opened_at == 50.0


# ======================================================================
# Stateful breaker
# ======================================================================


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_and_short_circuits(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker("spotify", _CONFIG, clock=clock)
        op = AsyncMock(side_effect=PlatformError("down"))

        for _ in range(3):
            with pytest.raises(PlatformError):
                await breaker.call(op)
        assert breaker.state is BreakerState.OPEN

        with pytest.raises(CircuitOpenError):
            await breaker.call(op)
        assert op.await_count == 3

    @pytest.mark.asyncio
    async def test_returned_failures_count(self) -> None:
        breaker = CircuitBreaker("itunes", _CONFIG, clock=FakeClock())
        op = AsyncMock(return_value="failed")
        for _ in range(3):
            await breaker.call(op, is_failure=lambda value: value == "failed")
        assert breaker.state is BreakerState.OPEN

    @pytest.mark.asyncio
    async def test_fallback_used_while_open(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker("bandcamp", _CONFIG, clock=clock)
        for _ in range(3):
            breaker.record_failure()

        fallback = AsyncMock(return_value="fallback")
        op = AsyncMock(return_value="live")
        assert await breaker.call(op, fallback=fallback) == "fallback"
        op.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_through_half_open(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker("musicbrainz", _CONFIG, clock=clock)
        for _ in range(3):
            breaker.record_failure()
        assert breaker.status()["next_attempt_in_seconds"] == pytest.approx(30.0)

        clock.advance(31.0)
        op = AsyncMock(return_value="ok")
        await breaker.call(op)
        assert breaker.state is BreakerState.HALF_OPEN
        await breaker.call(op)
        assert breaker.state is BreakerState.CLOSED
        assert breaker.status()["failure_count"] == 0

    def test_reset(self) -> None:
        breaker = CircuitBreaker("spotify", _CONFIG, clock=FakeClock())
        for _ in range(3):
            breaker.record_failure()
        breaker.reset()
        assert breaker.state is BreakerState.CLOSED


class TestRegistry:
    def test_one_breaker_per_source(self) -> None:
        registry = CircuitBreakerRegistry(_CONFIG, clock=FakeClock())
        assert registry.get("spotify") is registry.get("spotify")
        assert registry.get("spotify") is not registry.get("itunes")

    def test_breakers_are_isolated(self) -> None:
        registry = CircuitBreakerRegistry(_CONFIG, clock=FakeClock())
        for _ in range(3):
            registry.get("spotify").record_failure()
        status = registry.all_status()
        registry.get("itunes")
        assert status["spotify"]["state"] == "open"
        assert registry.get("itunes").state is BreakerState.CLOSED

    def test_overrides(self) -> None:
        strict = BreakerConfig(failure_threshold=1)
        registry = CircuitBreakerRegistry(_CONFIG, overrides={"bandcamp": strict}, clock=FakeClock())
        registry.get("bandcamp").record_failure()
        assert registry.get("bandcamp").state is BreakerState.OPEN

    def test_reset_all(self) -> None:
        registry = CircuitBreakerRegistry(_CONFIG, clock=FakeClock())
        for _ in range(3):
            registry.get("spotify").record_failure()
        registry.reset_all()
        assert registry.all_status()["spotify"]["state"] == "closed"
