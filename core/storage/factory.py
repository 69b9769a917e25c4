"""
Storage factory for creating storage backend instances.

This module provides factory functions to create the appropriate
storage implementation based on configuration.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from core.logging import get_logger
from core.storage.base import BaseStorage


if TYPE_CHECKING:
    from core.config import Settings


logger = get_logger(__name__)


class StorageBackend(str, Enum):
    """Supported storage backends."""
    LOCALSTORAGE = "localstorage"
    REDIS = "redis"
    UPSTASH = "upstash"
    D1 = "d1"


def get_storage_backend(settings: "Settings") -> StorageBackend:
    """
    Determine which storage backend to use based on settings.

    Args:
        settings: Application settings

    Returns:
        The configured storage backend

    Raises:
        ValueError: If the storage type is not supported
    """
    backend_str = settings.storage_type

    try:
        return StorageBackend(backend_str)
    except ValueError:
        raise ValueError(
            f"Unsupported storage type: {backend_str}. "
            f"Supported types: {[b.value for b in StorageBackend]}"
        )


def create_storage(settings: "Settings") -> Optional[BaseStorage]:
    """
    Create a storage instance based on settings.

    Args:
        settings: Application settings

    Returns:
        Configured storage instance (not yet initialized), or None when
        there is no server-side storage (localstorage or an unknown type)
    """
    try:
        backend = get_storage_backend(settings)
    except ValueError as e:
        logger.warning("No storage backend created", error=str(e))
        return None

    if backend == StorageBackend.LOCALSTORAGE:
        logger.info("Local storage selected, no server-side storage")
        return None

    elif backend == StorageBackend.REDIS:
        from core.storage.redis import RedisStorage

        logger.info("Creating Redis storage")
        return RedisStorage(redis_url=settings.redis_url or "")

    elif backend == StorageBackend.UPSTASH:
        from core.storage.upstash import UpstashRedisStorage

        logger.info("Creating Upstash storage")
        return UpstashRedisStorage(
            url=settings.upstash_url or "",
            token=settings.upstash_token or "",
        )

    elif backend == StorageBackend.D1:
        from core.storage.d1 import D1Storage

        logger.info("Creating D1 storage", database_id=settings.d1_database_id)
        return D1Storage(
            database_id=settings.d1_database_id or "",
            account_id=settings.d1_account_id or "",
            api_token=settings.d1_api_token or "",
            api_base_url=settings.d1_api_base_url,
        )

    else:
        raise ValueError(f"Unsupported backend: {backend}")
