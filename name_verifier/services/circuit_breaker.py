"""Per-source circuit breakers.

The breaker is an explicit finite-state machine:

    CLOSED --(failures in window >= threshold)--> OPEN
    OPEN --(recovery timeout elapsed, next call)--> HALF_OPEN
    HALF_OPEN --(success_threshold consecutive successes)--> CLOSED
    HALF_OPEN --(any failure)--> OPEN  (recovery timer restarts)

State lives in an immutable :class:`BreakerSnapshot`; the module-level
functions ``allow_request``, ``record_success`` and ``record_failure`` are
pure transitions that take the current time as an argument, so the state
machine is testable without real clocks or network calls.

:class:`CircuitBreaker` wraps those transitions around an async call and
logs state changes.  :class:`CircuitBreakerRegistry` hands out one breaker
per source; breakers never share state, so one failing source cannot block
another.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from name_verifier.utils.errors import CircuitOpenError
from name_verifier.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class BreakerState(str, Enum):  # noqa: UP042
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerConfig:
    """Thresholds for one breaker.

    Attributes
    ----------
    failure_threshold:
        Failures inside ``monitoring_window`` that trip CLOSED -> OPEN.
    recovery_timeout:
        Seconds an OPEN breaker waits before allowing a HALF_OPEN probe.
    success_threshold:
        Consecutive HALF_OPEN successes needed to close again.
    monitoring_window:
        Rolling window (seconds) in which failures are counted.
    """

    failure_threshold: int = 3
    recovery_timeout: float = 30.0
    success_threshold: int = 2
    monitoring_window: float = 60.0


@dataclass(frozen=True)
class BreakerSnapshot:
    state: BreakerState = BreakerState.CLOSED
    failure_times: tuple[float, ...] = ()
    consecutive_successes: int = 0
    opened_at: float | None = None


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def _prune(failure_times: tuple[float, ...], config: BreakerConfig, now: float) -> tuple[float, ...]:
    cutoff = now - config.monitoring_window
    return tuple(t for t in failure_times if t > cutoff)


def allow_request(
    snapshot: BreakerSnapshot, config: BreakerConfig, now: float
) -> tuple[bool, BreakerSnapshot]:
    """Decide whether a call may proceed.

    Returns the decision and the (possibly transitioned) snapshot.  An OPEN
    breaker whose recovery timeout has elapsed moves to HALF_OPEN and lets
    the call through as a probe.
    """
    if snapshot.state is BreakerState.OPEN:
        opened_at = snapshot.opened_at if snapshot.opened_at is not None else now
        if now - opened_at >= config.recovery_timeout:
            return True, replace(
                snapshot, state=BreakerState.HALF_OPEN, consecutive_successes=0
            )
        return False, snapshot
    return True, snapshot


def record_success(
    snapshot: BreakerSnapshot, config: BreakerConfig, now: float
) -> BreakerSnapshot:
    if snapshot.state is BreakerState.HALF_OPEN:
        successes = snapshot.consecutive_successes + 1
        if successes >= config.success_threshold:
            return BreakerSnapshot()
        return replace(snapshot, consecutive_successes=successes)

    if snapshot.state is BreakerState.CLOSED:
        return replace(snapshot, failure_times=_prune(snapshot.failure_times, config, now))

    # A call that started before the breaker opened finished late.
    return snapshot


def record_failure(
    snapshot: BreakerSnapshot, config: BreakerConfig, now: float
) -> BreakerSnapshot:
    if snapshot.state is BreakerState.HALF_OPEN:
        return BreakerSnapshot(
            state=BreakerState.OPEN,
            failure_times=(now,),
            consecutive_successes=0,
            opened_at=now,
        )

    if snapshot.state is BreakerState.OPEN:
        return snapshot

    failures = _prune(snapshot.failure_times, config, now) + (now,)
    if len(failures) >= config.failure_threshold:
        return BreakerSnapshot(
            state=BreakerState.OPEN,
            failure_times=failures,
            consecutive_successes=0,
            opened_at=now,
        )
    return replace(snapshot, failure_times=failures, consecutive_successes=0)


# ---------------------------------------------------------------------------
# Stateful wrapper
# ---------------------------------------------------------------------------


class CircuitBreaker:
    """Guards calls to a single source.

    Parameters
    ----------
    name:
        Source identifier, used in logs and :class:`CircuitOpenError`.
    config:
        Thresholds; see :class:`BreakerConfig`.
    clock:
        Monotonic time source.  Tests inject a fake.
    """

    def __init__(
        self,
        name: str,
        config: BreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._config = config or BreakerConfig()
        self._clock = clock
        self._snapshot = BreakerSnapshot()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> BreakerState:
        return self._snapshot.state

    def _transition(self, new: BreakerSnapshot) -> None:
        old_state = self._snapshot.state
        self._snapshot = new
        if new.state is not old_state:
            _logger.info(
                "breaker_state_changed",
                source=self._name,
                from_state=old_state.value,
                to_state=new.state.value,
                failures=len(new.failure_times),
            )

    def record_success(self) -> None:
        self._transition(record_success(self._snapshot, self._config, self._clock()))

    def record_failure(self) -> None:
        self._transition(record_failure(self._snapshot, self._config, self._clock()))

    async def call(
        self,
        operation: Callable[[], Awaitable[_T]],
        *,
        is_failure: Callable[[_T], bool] | None = None,
        fallback: Callable[[], Awaitable[_T]] | None = None,
    ) -> _T:
        """Run ``operation()`` through the breaker.

        Parameters
        ----------
        operation:
            Zero-argument factory for the guarded awaitable.
        is_failure:
            Optional predicate marking a *returned* value as a failure.
            Source adapters report failures as values rather than
            exceptions, so the coordinator passes one.
        fallback:
            Awaited instead of raising while the breaker is OPEN.

        Raises
        ------
        CircuitOpenError
            If the breaker rejects the call and no fallback is given.
        """
        allowed, snapshot = allow_request(self._snapshot, self._config, self._clock())
        self._transition(snapshot)
        if not allowed:
            _logger.debug("breaker_rejected", source=self._name)
            if fallback is not None:
                return await fallback()
            raise CircuitOpenError(
                message=f"circuit open for source '{self._name}'",
                provider_name=self._name,
            )

        try:
            result = await operation()
        except Exception:
            self.record_failure()
            raise

        if is_failure is not None and is_failure(result):
            self.record_failure()
        else:
            self.record_success()
        return result

    def status(self) -> dict[str, Any]:
        """Return a JSON-friendly view of the breaker."""
        now = self._clock()
        snap = self._snapshot
        next_attempt_in: float | None = None
        if snap.state is BreakerState.OPEN and snap.opened_at is not None:
            next_attempt_in = max(0.0, snap.opened_at + self._config.recovery_timeout - now)
        return {
            "name": self._name,
            "state": snap.state.value,
            "failure_count": len(_prune(snap.failure_times, self._config, now)),
            "consecutive_successes": snap.consecutive_successes,
            "next_attempt_in_seconds": next_attempt_in,
        }

    def reset(self) -> None:
        self._transition(BreakerSnapshot())


class CircuitBreakerRegistry:
    """Creates and holds one :class:`CircuitBreaker` per source name.

    Constructed once at startup and injected; breakers are created lazily
    with the registry's default config unless a per-source override exists.
    """

    def __init__(
        self,
        default_config: BreakerConfig | None = None,
        overrides: dict[str, BreakerConfig] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_config = default_config or BreakerConfig()
        self._overrides = dict(overrides or {})
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(
                name,
                config=self._overrides.get(name, self._default_config),
                clock=self._clock,
            )
            self._breakers[name] = breaker
        return breaker

    def all_status(self) -> dict[str, dict[str, Any]]:
        return {name: breaker.status() for name, breaker in self._breakers.items()}

    def reset_all(self) -> None:
        for breaker in self._breakers.values():
            breaker.reset()
