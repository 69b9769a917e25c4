"""
Registration and diagnostics response schemas.

Request bodies are parsed by the registration manager itself so that
validation failures surface with the service's own error messages
instead of FastAPI's 422 responses; these models document the contract.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request body for self-registration."""

    username: str = Field(
        ...,
        description="Desired username",
        examples=["alice"],
    )
    password: str = Field(
        ...,
        description="Password for the new account",
        examples=["secret1"],
    )


class RegisterResponse(BaseModel):
    """Response after a successful registration; the auth cookie is set alongside."""

    ok: bool = Field(default=True)


class ErrorResponse(BaseModel):
    """Failure response shared by the registration and debug endpoints."""

    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["User already exists"],
    )
    details: Optional[list[str]] = Field(
        default=None,
        description="Configuration errors, when the environment is invalid",
    )


class ValidationReport(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DebugEnvResponse(BaseModel):
    """Diagnostics returned by the debug endpoint."""

    timestamp: str
    validation: ValidationReport
    environment: dict[str, Any] = Field(
        ...,
        description="Environment summary; secrets appear only as has_* booleans",
    )
    headers: dict[str, Optional[str]]
    cloudflare_detection: dict[str, bool]
