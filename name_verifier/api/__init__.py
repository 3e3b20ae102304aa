"""HTTP surface of the name verifier: routes, schemas and middleware."""

from name_verifier.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from name_verifier.api.routes import router
from name_verifier.api.schemas import (
    MAX_BATCH_SIZE,
    ErrorResponse,
    HealthResponse,
    VerifyBatchRequest,
    VerifyBatchResponse,
    VerifyNameRequest,
    VerifyNameResponse,
)

__all__ = [
    "MAX_BATCH_SIZE",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "RequestLoggingMiddleware",
    "VerifyBatchRequest",
    "VerifyBatchResponse",
    "VerifyNameRequest",
    "VerifyNameResponse",
    "configure_cors",
    "router",
]
