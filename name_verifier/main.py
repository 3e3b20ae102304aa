"""Name verifier FastAPI application entry point.

Wires together source adapters, circuit breakers, the result cache and the
verification services via dependency injection, configures structured
logging, and exposes ``build_components`` for the CLI and for tests that
need the full object graph with fake adapters.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Callable

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from name_verifier.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from name_verifier.api.routes import router as api_router
from name_verifier.config.loader import ReferenceData, load_reference_data
from name_verifier.config.settings import Settings
from name_verifier.interfaces.source_adapter import ISourceAdapter
from name_verifier.providers.cache.memory_cache import MemoryResultCache
from name_verifier.providers.sources.bandcamp_source import BandcampSource
from name_verifier.providers.sources.famous_artists_source import FamousArtistsSource
from name_verifier.providers.sources.itunes_source import ITunesSource
from name_verifier.providers.sources.musicbrainz_source import MusicBrainzSource
from name_verifier.providers.sources.spotify_source import SpotifySource
from name_verifier.services.circuit_breaker import BreakerConfig, CircuitBreakerRegistry
from name_verifier.services.confidence_calculator import ConfidenceCalculator
from name_verifier.services.coordinator import VerificationCoordinator
from name_verifier.services.decision_engine import DecisionEngine
from name_verifier.services.evidence_aggregator import EvidenceAggregator
from name_verifier.services.request_deduplicator import RequestDeduplicator
from name_verifier.services.result_builder import ResultBuilder
from name_verifier.services.shortcuts import ShortcutService
from name_verifier.services.similarity import SimilarityScorer
from name_verifier.services.uniqueness import UniquenessScorer
from name_verifier.services.verification_service import VerificationService
from name_verifier.utils.errors import ConfigurationError
from name_verifier.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Source adapter selection
# ---------------------------------------------------------------------------


def _build_adapters(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    reference_data: ReferenceData,
    scorer: SimilarityScorer,
) -> list[ISourceAdapter]:
    """Instantiate the enabled sources in ``enabled_sources`` order.

    Unknown source ids are logged and skipped; none left at all is a
    :class:`ConfigurationError`.  Sources without credentials
    are still built; the coordinator skips them via ``is_available()``.
    """
    factories: dict[str, Callable[[], ISourceAdapter]] = {
        "spotify": lambda: SpotifySource(http_client, app_settings, scorer),
        "itunes": lambda: ITunesSource(http_client, app_settings, scorer),
        "musicbrainz": lambda: MusicBrainzSource(app_settings, scorer),
        "bandcamp": lambda: BandcampSource(http_client, app_settings, scorer),
        "famous": lambda: FamousArtistsSource(
            reference_data, scorer, timeout_seconds=app_settings.famous_timeout_seconds
        ),
    }

    adapters: list[ISourceAdapter] = []
    for source_id in app_settings.enabled_sources:
        factory = factories.get(source_id)
        if factory is None:
            _logger.warning("unknown_source_skipped", source=source_id)
            continue
        adapters.append(factory())

    if not adapters:
        raise ConfigurationError(
            f"no known source in enabled_sources {app_settings.enabled_sources!r}"
        )
    return adapters


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    adapters: list[ISourceAdapter] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Parameters
    ----------
    app_settings:
        Settings to build from.
    adapters:
        Source adapters to use instead of the configured ones.
    clock:
        Monotonic clock shared by the breakers, the cache and the
        deduplicator.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)
    reference_data = load_reference_data(app_settings.reference_data_path or None)

    # -- Scoring --
    uniqueness = UniquenessScorer(reference_data)
    scorer = SimilarityScorer(uniqueness)

    # -- Sources --
    if adapters is None:
        adapters = _build_adapters(app_settings, http_client, reference_data, scorer)

    # -- Resilience & caching --
    breakers = CircuitBreakerRegistry(
        BreakerConfig(
            failure_threshold=app_settings.breaker_failure_threshold,
            recovery_timeout=app_settings.breaker_recovery_timeout_seconds,
            success_threshold=app_settings.breaker_success_threshold,
            monitoring_window=app_settings.breaker_monitoring_window_seconds,
        ),
        clock=clock,
    )
    cache = MemoryResultCache(app_settings.cache_max_entries, clock=clock)

    # -- Decision pipeline --
    decision_engine = DecisionEngine(app_settings)
    result_builder = ResultBuilder(reference_data)
    shortcuts = ShortcutService(reference_data, decision_engine, result_builder)

    coordinator = VerificationCoordinator(
        settings=app_settings,
        adapters=adapters,
        breakers=breakers,
        cache=cache,
        shortcuts=shortcuts,
        aggregator=EvidenceAggregator(),
        scorer=scorer,
        calculator=ConfidenceCalculator(),
        decision_engine=decision_engine,
        result_builder=result_builder,
    )
    verification_service = VerificationService(coordinator)
    deduplicator = RequestDeduplicator(
        window_seconds=app_settings.dedup_window_seconds,
        max_entries=app_settings.dedup_max_entries,
        clock=clock,
    )

    return {
        "settings": app_settings,
        "http_client": http_client,
        "reference_data": reference_data,
        "adapters": adapters,
        "breakers": breakers,
        "cache": cache,
        "coordinator": coordinator,
        "verification_service": verification_service,
        "deduplicator": deduplicator,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build components on startup (unless already injected), clean up on shutdown."""
    if getattr(application.state, "verification_service", None) is None:
        components = build_components(settings)
        for key, value in components.items():
            setattr(application.state, key, value)

    state = application.state
    state.cache.start_sweeper(state.settings.cache_sweep_interval_seconds)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=state.settings.app_env,
        sources=[adapter.source_id for adapter in state.adapters],
    )

    yield

    # -- Shutdown: stop the sweeper and close the shared httpx client --
    await state.cache.stop_sweeper()
    http_client: httpx.AsyncClient = state.http_client
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    *components* (as returned by :func:`build_components`) are placed on
    ``app.state`` up front; otherwise they are built at startup.
    """
    application = FastAPI(
        title="Name Verifier API",
        version=_VERSION,
        description=(
            "Check whether a band or song name is already in use by querying "
            "Spotify, iTunes, MusicBrainz, Bandcamp and a famous-artist list, "
            "then combining the evidence into a single verdict."
        ),
        lifespan=_lifespan,
    )
    for key, value in (components or {}).items():
        setattr(application.state, key, value)

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "name_verifier.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
