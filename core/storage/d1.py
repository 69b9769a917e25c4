"""
Cloudflare D1 storage backend implementation.

Runs SQL through the D1 HTTP query endpoint:

    POST {api_base}/accounts/{account_id}/d1/database/{database_id}/query
    {"sql": "...", "params": [...]}

Schema (see scripts/setup_db.py):
- users(username TEXT PRIMARY KEY, password TEXT NOT NULL, created_at INTEGER)
- admin_config(id INTEGER PRIMARY KEY CHECK (id = 1), config TEXT NOT NULL)
"""

import time
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


logger = get_logger(__name__)


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        username TEXT PRIMARY KEY,
        password TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS admin_config (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        config TEXT NOT NULL
    )
    """,
)


class D1Storage(BaseStorage):
    """
    D1-backed storage over the Cloudflare API.
    """

    name = "d1"

    def __init__(
        self,
        database_id: str,
        account_id: str,
        api_token: str,
        api_base_url: str = "https://api.cloudflare.com/client/v4",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize D1 storage.

        Args:
            database_id: D1 database UUID
            account_id: Cloudflare account id owning the database
            api_token: API token with D1 edit permission
            api_base_url: Cloudflare API root
            transport: Optional httpx transport (tests)
        """
        self._database_id = database_id
        self._query_path = f"/accounts/{account_id}/d1/database/{database_id}/query"
        self._api_base_url = api_base_url.rstrip("/")
        self._api_token = api_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def setup(self) -> None:
        if self._client is not None:
            return
        try:
            self._client = httpx.AsyncClient(
                base_url=self._api_base_url,
                headers={"Authorization": f"Bearer {self._api_token}"},
                transport=self._transport,
            )
        except (httpx.InvalidURL, ValueError) as e:
            raise StorageConnectionError(f"D1 Connection failed: {e}") from e
        logger.info("D1 storage initialized", database_id=self._database_id)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("D1 storage closed")

    async def execute(self, sql: str, *params: Any) -> dict[str, Any]:
        """
        Run one statement.

        Returns:
            The statement result: {"results": [...rows], "meta": {...}}
        """
        if self._client is None:
            raise RuntimeError("D1 storage not initialized. Call setup() first.")

        try:
            response = await self._client.post(
                self._query_path,
                json={"sql": sql, "params": list(params)},
            )
        except httpx.TransportError as e:
            raise StorageConnectionError(f"D1 Connection failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise StorageError(f"D1 returned HTTP {response.status_code} with a non-JSON body") from e

        if response.status_code >= 400 or not data.get("success", False):
            messages = "; ".join(
                str(err.get("message", err)) for err in data.get("errors") or []
            )
            raise StorageError(f"D1 query failed: {messages or response.status_code}")

        results = data.get("result") or [{}]
        return results[0]

    async def ensure_schema(self) -> None:
        """Create tables if missing. Idempotent."""
        for statement in SCHEMA_STATEMENTS:
            await self.execute(statement.strip())
        logger.info("D1 schema ensured", database_id=self._database_id)

    async def check_user_exist(self, username: str) -> bool:
        result = await self.execute(
            "SELECT 1 FROM users WHERE username = ? LIMIT 1",
            username,
        )
        return bool(result.get("results"))

    async def register_user(self, username: str, password: str) -> None:
        result = await self.execute(
            "INSERT INTO users (username, password, created_at) VALUES (?, ?, ?) "
            "ON CONFLICT(username) DO NOTHING",
            username,
            password,
            int(time.time() * 1000),
        )
        if not (result.get("meta") or {}).get("changes"):
            raise DuplicateUserError(username)
        logger.debug("User stored in D1", username=username)

    async def get_admin_config(self) -> Optional[AdminConfig]:
        result = await self.execute("SELECT config FROM admin_config WHERE id = 1")
        rows = result.get("results") or []
        if not rows:
            return None
        return AdminConfig.from_json(rows[0]["config"])

    async def save_admin_config(self, config: AdminConfig) -> None:
        await self.execute(
            "INSERT INTO admin_config (id, config) VALUES (1, ?) "
            "ON CONFLICT(id) DO UPDATE SET config = excluded.config",
            config.to_json(),
        )
