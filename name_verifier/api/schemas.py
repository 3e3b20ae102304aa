"""Pydantic request/response schemas for the name verifier API.

Request schemas are deliberately loose (plain strings): the verification
service validates names and types itself so that malformed input is
reported as a 400 with the same message the CLI and library callers see.
FastAPI serializes responses by alias, so verification results come out
with camelCase keys (``similarNames``, ``verificationLinks``, ...).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from name_verifier.models.verification import VerificationOptions, VerificationResult

MAX_BATCH_SIZE = 50


class VerifyNameRequest(BaseModel):
    """One name to verify."""

    name: str
    type: str = "band"
    options: VerificationOptions | None = None


class VerifyBatchRequest(BaseModel):
    """Several names verified together; results keep the input order."""

    names: list[VerifyNameRequest] = Field(default_factory=list)


class VerifyNameResponse(BaseModel):
    name: str
    type: str
    verification: VerificationResult


class VerifyBatchResponse(BaseModel):
    results: list[VerifyNameResponse]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    sources: dict[str, bool]
    breakers: dict[str, dict[str, Any]]
    cache: dict[str, Any]
    dedup: dict[str, Any]
    coordinator: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
