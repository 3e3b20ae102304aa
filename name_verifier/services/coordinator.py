"""Parallel verification coordinator.

Architecture overview
---------------------
The coordinator runs the whole verification pipeline for a batch of
names::

    cache -> shortcuts -> [source adapters behind circuit breakers]
          -> aggregator -> scorer -> confidence -> decision -> result
          -> cache write

Concurrency model:

- Names are processed in fixed-size chunks (``batch_chunk_size``); a chunk
  finishes before the next one starts.
- Every outbound source call, across every name and every chunk, passes
  through ONE process-wide semaphore sized by
  ``max_concurrent_source_calls``, so third-party rate limits are
  respected no matter how many batches are running.
- Results are indexed by input position, never by completion order.
- Each name has an overall timeout.  When it fires, the in-flight work is
  left to finish in the background and its result is discarded; the
  caller gets an ``uncertain`` result immediately.

Failure isolation: adapters report failures as evidence, each adapter is
guarded by its own circuit breaker, and any unexpected error while
verifying one name becomes an ``uncertain`` result for that name only.
"""

from __future__ import annotations

import asyncio
from typing import Any

from name_verifier.config.settings import Settings
from name_verifier.interfaces.cache_provider import ICacheProvider
from name_verifier.interfaces.source_adapter import ISourceAdapter
from name_verifier.models.verification import (
    CacheEntry,
    NameType,
    PlatformEvidence,
    SearchQuality,
    VerificationRequest,
    VerificationResult,
)
from name_verifier.services.circuit_breaker import CircuitBreakerRegistry
from name_verifier.services.confidence_calculator import ConfidenceCalculator
from name_verifier.services.decision_engine import DecisionEngine
from name_verifier.services.evidence_aggregator import EvidenceAggregator
from name_verifier.services.result_builder import ResultBuilder
from name_verifier.services.shortcuts import ShortcutService
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.utils.concurrency import gather_in_chunks, throttled_gather
from name_verifier.utils.errors import CacheError, CircuitOpenError, ErrorCode, classify_error
from name_verifier.utils.logging import get_logger
from name_verifier.utils.text_normalizer import cache_key

logger = get_logger(__name__)


class VerificationCoordinator:
    """Fans verification out to source adapters and assembles results.

    All collaborators are injected; ``main.py`` builds them once at
    startup.  Tests pass fake adapters and fake clocks.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        adapters: list[ISourceAdapter],
        breakers: CircuitBreakerRegistry,
        cache: ICacheProvider,
        shortcuts: ShortcutService,
        aggregator: EvidenceAggregator,
        scorer: SimilarityScorer,
        calculator: ConfidenceCalculator,
        decision_engine: DecisionEngine,
        result_builder: ResultBuilder,
    ) -> None:
        self._adapters = list(adapters)
        self._breakers = breakers
        self._cache = cache
        self._shortcuts = shortcuts
        self._aggregator = aggregator
        self._scorer = scorer
        self._calculator = calculator
        self._engine = decision_engine
        self._builder = result_builder

        self._semaphore = asyncio.Semaphore(settings.max_concurrent_source_calls)
        self._chunk_size = settings.batch_chunk_size
        self._request_timeout = settings.request_timeout_seconds
        self._background: set[asyncio.Task[Any]] = set()

        self._verified = 0
        self._shortcut_hits = 0
        self._timeouts = 0
        self._errors = 0
        self._cache_errors = 0

    @property
    def adapters(self) -> list[ISourceAdapter]:
        return list(self._adapters)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def verify_batch(self, requests: list[VerificationRequest]) -> list[VerificationResult]:
        """Verify every request, returning results in input order."""
        if not requests:
            return []
        logger.info("batch_verification_started", count=len(requests))
        factories = [lambda r=request: self.verify(r) for request in requests]
        results = await gather_in_chunks(factories, self._chunk_size)
        logger.info(
            "batch_verification_complete",
            count=len(results),
            statuses=[r.status.value for r in results],
        )
        return results

    async def verify(self, request: VerificationRequest) -> VerificationResult:
        """Verify a single request under the overall request timeout."""
        key = cache_key(request.name, request.type.value)
        started = self._cache.now()
        options = request.options

        if options.cache_enabled:
            entry = await self._read_cache(key, options.max_cache_age)
            if entry is not None:
                return entry.result

        task = asyncio.create_task(self._compute(request))
        done, _ = await asyncio.wait({task}, timeout=self._request_timeout)
        if task in done:
            result, ttl = task.result()
            if not options.cache_enabled:
                return result
            # A concurrent request may have cached a newer result while we awaited.
            entry = await self._write_cache(key, result, ttl, started)
            return entry.result if entry is not None else result

        self._timeouts += 1
        self._background.add(task)
        task.add_done_callback(self._discard_background)
        logger.warning(
            "verification_timeout",
            name=request.name,
            type=request.type.value,
            timeout_s=self._request_timeout,
        )
        decision = self._engine.error("Verification timed out")
        return self._builder.error(request.name, request.type, decision)

    def stats(self) -> dict[str, int]:
        return {
            "verified": self._verified,
            "shortcut_hits": self._shortcut_hits,
            "timeouts": self._timeouts,
            "errors": self._errors,
            "cache_errors": self._cache_errors,
            "background_tasks": len(self._background),
        }

    # ------------------------------------------------------------------
    # Result cache
    # ------------------------------------------------------------------

    async def _read_cache(self, key: str, max_age: int | None) -> CacheEntry | None:
        """Cache lookup; a failing cache reads as a miss."""
        try:
            return await self._cache.get(key, max_age=max_age)
        except Exception as exc:
            self._cache_failed("get", key, exc)
            return None

    async def _write_cache(
        self, key: str, result: VerificationResult, ttl: int, started: float
    ) -> CacheEntry | None:
        """Cache write; on failure the fresh result is returned uncached."""
        try:
            return await self._cache.set(key, result, ttl, written_after=started)
        except Exception as exc:
            self._cache_failed("set", key, exc)
            return None

    def _cache_failed(self, operation: str, key: str, exc: Exception) -> None:
        self._cache_errors += 1
        if isinstance(exc, CacheError):
            error = exc
        else:
            error = CacheError(message=str(exc) or type(exc).__name__)
        logger.warning(
            "cache_failed",
            operation=operation,
            key=key,
            code=error.code.value,
            error=error.message,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _compute(self, request: VerificationRequest) -> tuple[VerificationResult, int]:
        """Run shortcuts or the full pipeline; returns the result and its TTL."""
        try:
            return await self._run_pipeline(request)
        except Exception as exc:
            self._errors += 1
            logger.error(
                "verification_failed",
                name=request.name,
                type=request.type.value,
                error=str(exc),
                exc_info=True,
            )
            decision = self._engine.error(f"Verification failed: {exc}")
            result = self._builder.error(request.name, request.type, decision)
            return result, decision.cache_ttl_seconds

    async def _run_pipeline(self, request: VerificationRequest) -> tuple[VerificationResult, int]:
        name, name_type, options = request.name, request.type, request.options

        shortcut = self._shortcuts.check(name, name_type, options)
        if shortcut is not None:
            self._shortcut_hits += 1
            return shortcut.result, shortcut.ttl_seconds

        per_source = await self._gather_evidence(name, name_type, options.platforms_to_query)
        evidence = self._aggregator.aggregate(per_source)
        similarity_scores = self._scorer.score(name, evidence.all_matches)
        genre = next((m.genres[0] for m in evidence.all_matches if m.genres), None)
        uniqueness = self._scorer.score_uniqueness(name, genre=genre)
        confidence = self._calculator.calculate(evidence, similarity_scores, uniqueness)
        decision = self._engine.decide(evidence, confidence, similarity_scores, uniqueness)
        result = self._builder.build(name, name_type, decision, evidence)

        self._verified += 1
        logger.info(
            "name_verified",
            name=name,
            type=name_type.value,
            status=decision.status.value,
            reason=decision.primary_reason.value,
            confidence=round(decision.confidence, 3),
            quality=evidence.aggregation_quality.value,
            succeeded=evidence.sources_succeeded,
            failed=evidence.sources_failed,
        )
        return result, decision.cache_ttl_seconds

    # ------------------------------------------------------------------
    # Source fan-out
    # ------------------------------------------------------------------

    def _select_adapters(self, platforms: list[str] | None) -> list[ISourceAdapter]:
        selected = []
        for adapter in self._adapters:
            if platforms is not None and adapter.source_id not in platforms:
                continue
            if not adapter.is_available():
                logger.debug("source_unavailable", source=adapter.source_id)
                continue
            selected.append(adapter)
        return selected

    async def _gather_evidence(
        self, name: str, name_type: NameType, platforms: list[str] | None
    ) -> dict[str, PlatformEvidence]:
        adapters = self._select_adapters(platforms)
        outcomes = await throttled_gather(
            [self._query_source(adapter, name, name_type) for adapter in adapters],
            self._semaphore,
        )

        per_source: dict[str, PlatformEvidence] = {}
        for adapter, outcome in zip(adapters, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                error = classify_error(outcome, adapter.source_id)
                logger.warning(
                    "source_raised",
                    source=adapter.source_id,
                    code=error.code.value,
                    error=error.message,
                )
                outcome = _failed_evidence(adapter, error.message, error.code)
            per_source[adapter.source_id] = outcome
        return per_source

    async def _query_source(
        self, adapter: ISourceAdapter, name: str, name_type: NameType
    ) -> PlatformEvidence:
        breaker = self._breakers.get(adapter.source_id)

        async def _circuit_open() -> PlatformEvidence:
            error = CircuitOpenError(
                message=f"circuit open for source '{adapter.source_id}'",
                provider_name=adapter.source_id,
            )
            return _failed_evidence(adapter, error.message, error.code)

        return await breaker.call(
            lambda: adapter.verify(name, name_type),
            is_failure=lambda evidence: not evidence.available,
            fallback=_circuit_open,
        )

    def _discard_background(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("background_verification_failed", error=str(task.exception()))


def _failed_evidence(adapter: ISourceAdapter, message: str, code: ErrorCode) -> PlatformEvidence:
    return PlatformEvidence(
        source_id=adapter.source_id,
        available=False,
        reliability=adapter.reliability,
        search_quality=SearchQuality.FAILED,
        error=message,
        error_code=code,
    )
