"""FastAPI routes for the name verifier.

# ─── ENDPOINTS ────────────────────────────────────────────────────────
#
#   /api/v1/verify          POST    Verify one name
#   /api/v1/verify/batch    POST    Verify up to 50 names, order-preserving
#   /api/v1/health          GET     Sources, breaker states, cache/dedup stats
#
# Both POST routes run through the RequestDeduplicator: identical requests
# (same method, path, body and query) arriving while one is in flight, or
# within the dedup window after it finished, share one computation.
# ──────────────────────────────────────────────────────────────────────

Service dependencies are resolved from ``app.state`` via ``Depends`` using
the ``Annotated`` pattern.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from name_verifier.api.schemas import (
    MAX_BATCH_SIZE,
    HealthResponse,
    VerifyBatchRequest,
    VerifyBatchResponse,
    VerifyNameRequest,
    VerifyNameResponse,
)
from name_verifier.services.request_deduplicator import RequestDeduplicator, request_key
from name_verifier.services.verification_service import VerificationService
from name_verifier.utils.errors import InvalidInputError
from name_verifier.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_verification_service(request: Request) -> VerificationService:
    return request.app.state.verification_service


def _get_deduplicator(request: Request) -> RequestDeduplicator:
    return request.app.state.deduplicator


VerificationServiceDep = Annotated[VerificationService, Depends(_get_verification_service)]
DeduplicatorDep = Annotated[RequestDeduplicator, Depends(_get_deduplicator)]


def _dedup_key(request: Request, body: Any) -> str:
    return request_key(
        request.method,
        request.url.path,
        body=body,
        query=dict(request.query_params),
    )


# ---------------------------------------------------------------------------
# Verification endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/verify",
    response_model=VerifyNameResponse,
    summary="Verify one band or song name",
)
async def verify_name(
    request: Request,
    body: VerifyNameRequest,
    service: VerificationServiceDep,
    deduplicator: DeduplicatorDep,
) -> VerifyNameResponse:
    """Check whether a name is already in use across music catalogs."""
    payload = body.model_dump(mode="json", exclude_none=True)

    async def _compute() -> VerifyNameResponse:
        result = await service.verify_name(body.name, body.type, body.options)
        return VerifyNameResponse(name=body.name.strip(), type=body.type, verification=result)

    return await deduplicator.run(_dedup_key(request, payload), _compute)


@router.post(
    "/verify/batch",
    response_model=VerifyBatchResponse,
    summary="Verify several names at once",
)
async def verify_batch(
    request: Request,
    body: VerifyBatchRequest,
    service: VerificationServiceDep,
    deduplicator: DeduplicatorDep,
) -> VerifyBatchResponse:
    """Verify up to 50 names; results are returned in request order."""
    if not body.names:
        raise InvalidInputError(message="At least one name is required")
    if len(body.names) > MAX_BATCH_SIZE:
        raise InvalidInputError(
            message=f"At most {MAX_BATCH_SIZE} names can be verified per request"
        )

    payload = body.model_dump(mode="json", exclude_none=True)

    async def _compute() -> VerifyBatchResponse:
        items = [item.model_dump(exclude_none=True) for item in body.names]
        results = await service.verify_names(items)
        return VerifyBatchResponse(
            results=[
                VerifyNameResponse(name=item.name.strip(), type=item.type, verification=result)
                for item, result in zip(body.names, results, strict=True)
            ]
        )

    return await deduplicator.run(_dedup_key(request, payload), _compute)


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return source availability, breaker states and cache statistics."""
    state = request.app.state
    sources = {adapter.source_id: adapter.is_available() for adapter in state.adapters}
    breakers = state.breakers.all_status()

    any_source_up = any(
        available and breakers.get(source_id, {}).get("state") != "open"
        for source_id, available in sources.items()
    )
    any_breaker_open = any(b.get("state") == "open" for b in breakers.values())
    if not any_source_up:
        status = "unhealthy"
    elif any_breaker_open:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=_VERSION,
        sources=sources,
        breakers=breakers,
        cache=state.cache.stats(),
        dedup=state.deduplicator.stats(),
        coordinator=state.coordinator.stats(),
    )
