"""
Environment variable validation.

Checks that the variables needed by the selected storage backend are
present and look well-formed. Missing backend variables are errors;
everything else (admin identity, site name, suspicious formats) is
reported as a warning and never affects validity.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from core.config import Settings, normalize_storage_type
from core.logging import get_logger


logger = get_logger(__name__)

DEFAULT_SITE_NAME = "MoonTV"
MIN_UPSTASH_TOKEN_LENGTH = 10
MIN_PASSWORD_LENGTH = 6


@dataclass
class ValidationResult:
    """Outcome of one validation run."""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def _missing(name: str) -> str:
    return f"Missing required environment variable: {name}"


def _recommend(name: str, purpose: str) -> str:
    return f"Recommended environment variable is not set: {name} ({purpose})"


def _validate_upstash(settings: Settings, result: ValidationResult) -> None:
    if not settings.upstash_url:
        result.errors.append(_missing("UPSTASH_URL"))
    else:
        logger.debug("UPSTASH_URL configured")
        if not settings.upstash_url.startswith("https://"):
            result.warnings.append("UPSTASH_URL should start with https://")

    if not settings.upstash_token:
        result.errors.append(_missing("UPSTASH_TOKEN"))
    else:
        logger.debug("UPSTASH_TOKEN configured", length=len(settings.upstash_token))
        if len(settings.upstash_token) < MIN_UPSTASH_TOKEN_LENGTH:
            result.warnings.append("UPSTASH_TOKEN length looks incorrect")


def _validate_redis(settings: Settings, result: ValidationResult) -> None:
    if not settings.redis_url:
        result.errors.append(_missing("REDIS_URL"))
        return

    logger.debug("REDIS_URL configured")
    if not settings.redis_url.startswith(("redis://", "rediss://")):
        result.warnings.append("REDIS_URL should start with redis:// or rediss://")


def _validate_d1(settings: Settings, result: ValidationResult) -> None:
    if not settings.d1_database_id:
        result.errors.append(_missing("D1_DATABASE_ID"))
    else:
        logger.debug("D1_DATABASE_ID configured")

    # The HTTP adapter needs these, the database id alone identifies nothing
    if not settings.d1_account_id:
        result.warnings.append(_recommend("D1_ACCOUNT_ID", "Cloudflare account for the D1 API"))
    if not settings.d1_api_token:
        result.warnings.append(_recommend("D1_API_TOKEN", "Cloudflare API token for the D1 API"))


def _validate_common(settings: Settings, storage_type: str, result: ValidationResult) -> None:
    if not settings.username:
        result.warnings.append(_recommend("USERNAME", "administrator username"))
    else:
        logger.debug("USERNAME configured")

    if not settings.password:
        result.warnings.append(_recommend("PASSWORD", "administrator password"))
    else:
        logger.debug("PASSWORD configured")
        if len(settings.password) < MIN_PASSWORD_LENGTH:
            result.warnings.append(
                f"PASSWORD should be at least {MIN_PASSWORD_LENGTH} characters long"
            )

    if settings.enable_register:
        logger.debug("User registration enabled")
        if storage_type == "localstorage":
            result.warnings.append(
                "Registration is enabled; use a database storage type instead of localstorage"
            )

    if not settings.site_name:
        result.warnings.append(_recommend("SITE_NAME", "site name"))


_BACKEND_VALIDATORS = {
    "upstash": _validate_upstash,
    "redis": _validate_redis,
    "d1": _validate_d1,
}


def validate_environment(
    settings: Settings,
    storage_type: Optional[str] = None,
) -> ValidationResult:
    """
    Validate configuration for a storage type.

    Args:
        settings: Application settings (the process environment)
        storage_type: Storage type to validate for; defaults to the configured one

    Returns:
        A fresh ValidationResult; valid iff no errors were found
    """
    storage_type = normalize_storage_type(storage_type) if storage_type else settings.storage_type
    result = ValidationResult()

    logger.debug("Validating environment", storage_type=storage_type)

    if storage_type == "localstorage":
        logger.debug("Local storage selected, skipping database checks")
    elif storage_type in _BACKEND_VALIDATORS:
        _BACKEND_VALIDATORS[storage_type](settings, result)
    else:
        result.warnings.append(f"Unknown storage type: {storage_type}")

    _validate_common(settings, storage_type, result)

    for error in result.errors:
        logger.error("Environment validation error", error=error)
    for warning in result.warnings:
        logger.warning("Environment validation warning", warning=warning)
    if result.valid and not result.warnings:
        logger.info("Environment validation passed", storage_type=storage_type)

    return result


def detect_cloudflare(headers: Mapping[str, str]) -> bool:
    """Requests proxied by Cloudflare carry a cf-ray id."""
    return bool(headers.get("cf-ray"))


def validate_cloudflare_environment(settings: Settings, headers: Mapping[str, str]) -> bool:
    """
    Log Cloudflare specific concerns for the current request.

    Returns:
        Whether the request came through Cloudflare
    """
    is_cloudflare = detect_cloudflare(headers)
    if not is_cloudflare:
        logger.debug("Request not served through Cloudflare")
        return False

    logger.info("Request served through Cloudflare", cf_ray=headers.get("cf-ray"))
    if settings.storage_type == "redis":
        logger.warning(
            "Cloudflare Workers may not reach Redis directly, Upstash is recommended",
        )
    return True


def get_environment_summary(settings: Settings) -> dict[str, Any]:
    """
    Summarize the environment without exposing any secret value.
    """
    return {
        "storage_type": settings.storage_type,
        "enable_register": settings.enable_register,
        "site_name": settings.site_name or DEFAULT_SITE_NAME,
        "has_username": bool(settings.username),
        "has_password": bool(settings.password),
        "has_upstash_url": bool(settings.upstash_url),
        "has_upstash_token": bool(settings.upstash_token),
        "has_redis_url": bool(settings.redis_url),
        "has_d1_database_id": bool(settings.d1_database_id),
        "environment": settings.environment,
        "docker_env": settings.docker_env,
    }
