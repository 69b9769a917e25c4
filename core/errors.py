"""
Registration failures and best-effort error classification.

Expected failures (closed registration, duplicate user, bad input) are
raised as RegistrationError subclasses with a stable user-facing message.
Unexpected exceptions are classified by matching known substrings of
their message against an ordered pattern table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class ErrorCategory(str, Enum):
    """Categories surfaced for unexpected failures."""
    BACKEND_CONNECTIVITY = "backend_connectivity"
    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    DATABASE = "database"
    MALFORMED_REQUEST = "malformed_request"
    SERVER = "server"


class RegistrationError(Exception):
    """Base class for failures returned to the caller."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(RegistrationError):
    """Environment validation failed."""
    status_code = 500


class UnsupportedModeError(RegistrationError):
    """Registration is impossible with browser-only storage."""


class RegistrationClosedError(RegistrationError):
    """The admin configuration does not allow registration."""


class InvalidRequestError(RegistrationError):
    """Request body is malformed or missing a field."""


class UserExistsError(RegistrationError):
    """Username is taken or reserved."""


class BackendError(RegistrationError):
    """Unexpected failure, classified for the caller."""

    status_code = 500

    def __init__(self, message: str, category: ErrorCategory):
        super().__init__(message)
        self.category = category


@dataclass(frozen=True)
class ErrorPattern:
    """
    Maps error message substrings to a category.

    A message of None passes the original error message through.
    """
    substrings: tuple[str, ...]
    category: ErrorCategory
    message: Optional[str]

    def matches(self, text: str) -> bool:
        return any(s in text for s in self.substrings)


# Failures while talking to the storage backend during registration
STORAGE_ERROR_PATTERNS: tuple[ErrorPattern, ...] = (
    ErrorPattern(
        ("UPSTASH", "Redis"),
        ErrorCategory.BACKEND_CONNECTIVITY,
        "Upstash Redis connection failed, please check environment variables",
    ),
    ErrorPattern(("environment variable",), ErrorCategory.CONFIGURATION, None),
    ErrorPattern(
        ("Connection", "ECONNREFUSED"),
        ErrorCategory.CONNECTION,
        "Database connection failed, please try again later",
    ),
)
STORAGE_ERROR_DEFAULT = ErrorPattern((), ErrorCategory.DATABASE, "Database error")

# Anything else escaping the registration flow
REQUEST_ERROR_PATTERNS: tuple[ErrorPattern, ...] = (
    ErrorPattern(("JSON",), ErrorCategory.MALFORMED_REQUEST, "Malformed request"),
    ErrorPattern(
        ("UPSTASH", "environment variable"),
        ErrorCategory.CONFIGURATION,
        "Upstash configuration error, please check environment variables",
    ),
)
REQUEST_ERROR_DEFAULT = ErrorPattern((), ErrorCategory.SERVER, "Server error")


def classify_error(
    exc: BaseException,
    patterns: Sequence[ErrorPattern],
    default: ErrorPattern,
) -> BackendError:
    """
    Translate an unexpected exception into a BackendError.

    The first pattern whose substring occurs in str(exc) wins.
    """
    text = str(exc)
    for pattern in patterns:
        if pattern.matches(text):
            return BackendError(pattern.message or text, pattern.category)
    return BackendError(default.message or text, default.category)
