"""
Pydantic schemas for API request/response validation.
"""

from api.schemas.register import (
    DebugEnvResponse,
    ErrorResponse,
    RegisterRequest,
    RegisterResponse,
    ValidationReport,
)

__all__ = [
    "DebugEnvResponse",
    "ErrorResponse",
    "RegisterRequest",
    "RegisterResponse",
    "ValidationReport",
]
