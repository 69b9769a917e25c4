"""
Upstash storage backend implementation.

Talks to the Upstash Redis REST API: each command is POSTed to the
database URL as a JSON array and answered with {"result": ...} or
{"error": "..."}. Uses the same key layout as the Redis backend.
"""

from typing import Any, Optional

import httpx

from core.admin_config import AdminConfig
from core.logging import get_logger
from core.storage.base import (
    BaseStorage,
    DuplicateUserError,
    StorageConnectionError,
    StorageError,
)
from core.storage.redis import ADMIN_CONFIG_KEY, user_password_key


logger = get_logger(__name__)


class UpstashRedisStorage(BaseStorage):
    """
    Upstash-backed storage over HTTPS.
    """

    name = "upstash"

    def __init__(
        self,
        url: str,
        token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Upstash storage.

        Args:
            url: Upstash REST URL (https://...)
            token: Upstash REST token
            transport: Optional httpx transport (tests)
        """
        self._url = url.rstrip("/")
        self._token = token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def setup(self) -> None:
        if self._client is not None:
            return
        try:
            self._client = httpx.AsyncClient(
                base_url=self._url,
                headers={"Authorization": f"Bearer {self._token}"},
                transport=self._transport,
            )
        except (httpx.InvalidURL, ValueError) as e:
            raise StorageConnectionError(f"Upstash Redis Connection failed: {e}") from e
        logger.info("Upstash storage initialized")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Upstash storage closed")

    async def _command(self, *args: Any) -> Any:
        if self._client is None:
            raise RuntimeError("Upstash storage not initialized. Call setup() first.")

        try:
            response = await self._client.post("/", json=[str(a) for a in args])
        except httpx.TransportError as e:
            raise StorageConnectionError(f"Upstash Redis Connection failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise StorageError(
                f"Upstash Redis returned HTTP {response.status_code} with a non-JSON body"
            ) from e

        if not isinstance(data, dict):
            raise StorageError(f"Upstash Redis returned an unexpected body: {data!r}")
        if response.status_code >= 400 or "error" in data:
            raise StorageError(
                f"Upstash Redis command {args[0]} failed: {data.get('error', response.status_code)}"
            )
        return data.get("result")

    async def check_user_exist(self, username: str) -> bool:
        return int(await self._command("EXISTS", user_password_key(username))) > 0

    async def register_user(self, username: str, password: str) -> None:
        result = await self._command("SET", user_password_key(username), password, "NX")
        if result is None:
            raise DuplicateUserError(username)
        logger.debug("User stored in Upstash", username=username)

    async def get_admin_config(self) -> Optional[AdminConfig]:
        raw = await self._command("GET", ADMIN_CONFIG_KEY)
        if raw is None:
            return None
        return AdminConfig.from_json(raw)

    async def save_admin_config(self, config: AdminConfig) -> None:
        await self._command("SET", ADMIN_CONFIG_KEY, config.to_json())
