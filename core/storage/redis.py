"""
Redis storage backend implementation.

Key layout (shared with the rest of the deployment):

    u:{username}:pwd   -> password
    admin:config       -> admin configuration JSON
"""

from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.admin_config import AdminConfig
from core.logging import get_logger
from core.storage.base import BaseStorage, DuplicateUserError, StorageConnectionError


logger = get_logger(__name__)

ADMIN_CONFIG_KEY = "admin:config"


def user_password_key(username: str) -> str:
    return f"u:{username}:pwd"


class RedisStorage(BaseStorage):
    """
    Redis-backed storage using redis-py's asyncio client.
    """

    name = "redis"

    def __init__(self, redis_url: str, client: Optional[Any] = None):
        """
        Initialize Redis storage.

        Args:
            redis_url: redis:// or rediss:// connection URL
            client: Pre-built asyncio client (tests); created in setup() otherwise
        """
        self._redis_url = redis_url
        self._client = client

    async def setup(self) -> None:
        if self._client is not None:
            return
        try:
            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
        except ValueError as e:
            # from_url rejects empty URLs and unknown schemes before connecting
            raise StorageConnectionError(f"Redis Connection failed: {e}") from e
        logger.info("Redis storage initialized")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Redis storage closed")

    def _get_client(self) -> Any:
        if self._client is None:
            raise RuntimeError("Redis storage not initialized. Call setup() first.")
        return self._client

    async def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        client = self._get_client()
        try:
            return await getattr(client, method)(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise StorageConnectionError(f"Redis Connection failed: {e}") from e

    async def check_user_exist(self, username: str) -> bool:
        return await self._call("exists", user_password_key(username)) > 0

    async def register_user(self, username: str, password: str) -> None:
        created = await self._call("set", user_password_key(username), password, nx=True)
        if not created:
            raise DuplicateUserError(username)
        logger.debug("User stored in Redis", username=username)

    async def get_admin_config(self) -> Optional[AdminConfig]:
        raw = await self._call("get", ADMIN_CONFIG_KEY)
        if raw is None:
            return None
        return AdminConfig.from_json(raw)

    async def save_admin_config(self, config: AdminConfig) -> None:
        await self._call("set", ADMIN_CONFIG_KEY, config.to_json())
