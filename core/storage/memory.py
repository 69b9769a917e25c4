"""
In-memory storage backend.

Keeps users and the admin configuration in process-local dictionaries.
Used by tests and for trying the service without a database.

Key features:
- Same conditional registration semantics as the real backends
- Controllable failure modes for testing error handling
"""

from typing import Optional

from core.admin_config import AdminConfig
from core.logging import get_logger
from core.storage.base import BaseStorage, DuplicateUserError


logger = get_logger(__name__)


class InMemoryStorage(BaseStorage):
    """Dictionary-backed storage."""

    name = "memory"

    def __init__(self, config: Optional[AdminConfig] = None):
        self.passwords: dict[str, str] = {}
        self._config_json: Optional[str] = config.to_json() if config else None
        self._failures: dict[str, Exception] = {}
        self.is_open = False

    async def setup(self) -> None:
        self.is_open = True

    async def close(self) -> None:
        self.is_open = False

    def fail_on(self, operation: str, error: Exception) -> None:
        """
        Make the next call to `operation` raise `error`.

        Args:
            operation: Method name, e.g. "register_user"
            error: Exception to raise
        """
        self._failures[operation] = error

    def _maybe_fail(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            logger.debug("Injected storage failure", operation=operation, error=str(error))
            raise error

    async def check_user_exist(self, username: str) -> bool:
        self._maybe_fail("check_user_exist")
        return username in self.passwords

    async def register_user(self, username: str, password: str) -> None:
        self._maybe_fail("register_user")
        if username in self.passwords:
            raise DuplicateUserError(username)
        self.passwords[username] = password

    async def get_admin_config(self) -> Optional[AdminConfig]:
        self._maybe_fail("get_admin_config")
        if self._config_json is None:
            return None
        # Hand out copies, like a real backend would
        return AdminConfig.from_json(self._config_json)

    async def save_admin_config(self, config: AdminConfig) -> None:
        self._maybe_fail("save_admin_config")
        self._config_json = config.to_json()
