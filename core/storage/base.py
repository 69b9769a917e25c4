"""
Abstract base class for storage backends.

This module defines the narrow contract the service needs from an
external key-value or SQL backend: user existence, user registration
and the admin configuration document.
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.admin_config import AdminConfig


class StorageError(Exception):
    """Base exception for storage backend failures."""


class StorageConnectionError(StorageError):
    """The backend could not be reached or answered with a transport error."""


class DuplicateUserError(StorageError):
    """The username was already registered."""

    def __init__(self, username: str):
        super().__init__(f"User already registered: {username}")
        self.username = username


class BaseStorage(ABC):
    """
    Abstract base class for user and configuration storage.

    All operations are coroutines. Implementations report backend
    failures by raising; they never retry.
    """

    name: str = "base"

    @abstractmethod
    async def setup(self) -> None:
        """
        Open clients/connections.

        This should be idempotent - safe to call multiple times.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (connections, clients)."""
        pass

    @abstractmethod
    async def check_user_exist(self, username: str) -> bool:
        """Check whether a user with this name is registered."""
        pass

    @abstractmethod
    async def register_user(self, username: str, password: str) -> None:
        """
        Store credentials for a new user.

        The write is conditional: if the username is already present
        (including a concurrent registration that won the race) the
        existing entry is left untouched and DuplicateUserError is raised.
        """
        pass

    @abstractmethod
    async def get_admin_config(self) -> Optional[AdminConfig]:
        """Get the stored admin configuration, or None if never saved."""
        pass

    @abstractmethod
    async def save_admin_config(self, config: AdminConfig) -> None:
        """Replace the stored admin configuration."""
        pass
