"""
Admin configuration document.

The document is owned by the storage backend and shared with the rest of
the deployment, so it keeps its original JSON keys (SiteConfig,
UserConfig, AllowRegister, Users) and preserves sections this service
does not know about.
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from core.logging import get_logger
from core.validation import DEFAULT_SITE_NAME


if TYPE_CHECKING:
    from core.config import Settings
    from core.storage.base import BaseStorage


logger = get_logger(__name__)


class UserRecord(BaseModel):
    """A user entry in the admin configuration."""

    model_config = ConfigDict(extra="allow")

    username: str
    role: str = "user"


class UserConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    allow_register: bool = Field(default=False, alias="AllowRegister")
    users: list[UserRecord] = Field(default_factory=list, alias="Users")


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    site_name: str = Field(default=DEFAULT_SITE_NAME, alias="SiteName")


class AdminConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    site_config: SiteConfig = Field(default_factory=SiteConfig, alias="SiteConfig")
    user_config: UserConfig = Field(default_factory=UserConfig, alias="UserConfig")

    def has_user(self, username: str) -> bool:
        return any(u.username == username for u in self.user_config.users)

    def add_user(self, username: str, role: str = "user") -> None:
        self.user_config.users.append(UserRecord(username=username, role=role))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "AdminConfig":
        return cls.model_validate_json(raw)

    @classmethod
    def default(cls, settings: "Settings") -> "AdminConfig":
        """Configuration used until one is saved to the backend."""
        return cls(
            site_config=SiteConfig(site_name=settings.site_name or DEFAULT_SITE_NAME),
            user_config=UserConfig(allow_register=settings.enable_register),
        )


async def load_admin_config(storage: "BaseStorage", settings: "Settings") -> AdminConfig:
    """
    Fetch the admin configuration, falling back to the defaults from settings.
    """
    config = await storage.get_admin_config()
    if config is None:
        logger.info(
            "No admin config stored, using defaults",
            allow_register=settings.enable_register,
        )
        return AdminConfig.default(settings)
    return config
