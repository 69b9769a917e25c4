"""
Storage abstraction layer.

Provides pluggable storage backends for:
- User credentials (existence check, registration)
- The admin configuration document

Supported backends:
- Redis
- Upstash (Redis over REST)
- Cloudflare D1
- In-memory (tests, local experiments)
"""

from core.storage.base import (
    BaseStorage,
    DuplicateUserError,
    StorageConnectionError,
    StorageError,
)
from core.storage.factory import (
    StorageBackend,
    create_storage,
    get_storage_backend,
)
from core.storage.memory import InMemoryStorage

__all__ = [
    # Abstract interface and errors
    "BaseStorage",
    "DuplicateUserError",
    "StorageConnectionError",
    "StorageError",
    # Factory functions
    "StorageBackend",
    "create_storage",
    "get_storage_backend",
    # Implementations without external dependencies
    "InMemoryStorage",
]
