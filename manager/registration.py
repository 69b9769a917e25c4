"""
注册管理器 - 用户自助注册流程。

作为 API 层、环境校验、存储后端和签名 Cookie 之间的桥梁：
校验环境 -> 检查存储模式 -> 读取配置 -> 解析请求 -> 查重 -> 写入 -> 签发 Cookie。
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from core.admin_config import load_admin_config
from core.config import Settings
from core.errors import (
    REQUEST_ERROR_DEFAULT,
    REQUEST_ERROR_PATTERNS,
    STORAGE_ERROR_DEFAULT,
    STORAGE_ERROR_PATTERNS,
    ConfigurationError,
    InvalidRequestError,
    RegistrationClosedError,
    RegistrationError,
    UnsupportedModeError,
    UserExistsError,
    classify_error,
)
from core.logging import get_logger
from core.signing import build_auth_cookie, encode_auth_cookie
from core.storage.base import BaseStorage, DuplicateUserError, StorageError
from core.validation import get_environment_summary, validate_environment


logger = get_logger(__name__)

USER_EXISTS_MESSAGE = "User already exists"


@dataclass
class RegistrationResult:
    """注册成功后需要写回客户端的内容。"""
    username: str
    cookie_value: str
    expires: datetime


class RegistrationManager:
    """
    注册流程编排。

    - 线性流程，任何一步失败即终止本次请求
    - 预期内的失败抛出 RegistrationError 子类
    - 预期外的异常按错误信息分类后转换为 BackendError

    存储后端通过构造参数注入，便于测试替换。
    """

    def __init__(self, settings: Settings, storage: Optional[BaseStorage]):
        """
        初始化注册管理器。

        Args:
            settings: 应用配置
            storage: 存储后端；localstorage 模式下为 None
        """
        self.settings = settings
        self.storage = storage

    async def register(self, body: bytes) -> RegistrationResult:
        """
        处理一次注册请求。

        Args:
            body: 原始请求体（JSON）

        Raises:
            RegistrationError: 所有失败，包括已分类的意外异常
        """
        logger.info("Registration request started", storage_type=self.settings.storage_type)

        # 1. 环境校验
        validation = validate_environment(self.settings)
        logger.info("Environment summary", **get_environment_summary(self.settings))
        if not validation.valid:
            logger.error(
                "Environment validation failed, refusing registration",
                errors=validation.errors,
            )
            raise ConfigurationError(
                "Server configuration error",
                details=validation.errors,
            )

        try:
            return await self._register(body)
        except RegistrationError:
            raise
        except Exception as e:
            logger.error(
                "Registration failed with unexpected error",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            raise classify_error(e, REQUEST_ERROR_PATTERNS, REQUEST_ERROR_DEFAULT) from e

    async def _register(self, body: bytes) -> RegistrationResult:
        # 2. localstorage 模式下不支持注册
        if self.settings.is_local_storage:
            logger.info("Registration rejected: unsupported in localstorage mode")
            raise UnsupportedModeError("Registration is not supported in the current mode")

        if self.storage is None:
            raise StorageError(
                f"No storage backend available for storage type {self.settings.storage_type}"
            )

        # 3. 读取配置，检查是否开放注册
        config = await load_admin_config(self.storage, self.settings)
        logger.info(
            "Admin config loaded",
            allow_register=config.user_config.allow_register,
        )
        if not config.user_config.allow_register:
            logger.info("Registration rejected: registration closed")
            raise RegistrationClosedError("Registration is currently closed")

        # 4. 解析请求体
        username, password = self._parse_credentials(body)

        # 5. 不允许与管理员重名（统一返回“用户已存在”）
        if self.settings.username and username == self.settings.username:
            logger.info("Registration rejected: username reserved for admin")
            raise UserExistsError(USER_EXISTS_MESSAGE)

        try:
            # 6. 查重
            exists = await self.storage.check_user_exist(username)
            logger.info("User existence checked", username=username, exists=exists)
            if exists:
                logger.info("Registration rejected: user exists", username=username)
                raise UserExistsError(USER_EXISTS_MESSAGE)

            # 7. 写入用户，再写入配置（两次写入非事务）
            await self.storage.register_user(username, password)
            logger.info("User stored", username=username)

            config.add_user(username, role="user")
            await self.storage.save_admin_config(config)
            logger.info("Admin config updated", users=len(config.user_config.users))

            # 8. 签发 Cookie
            payload = build_auth_cookie(username, self.settings.signing_secret)
            result = RegistrationResult(
                username=username,
                cookie_value=encode_auth_cookie(payload),
                expires=payload.expires_at,
            )
        except RegistrationError:
            raise
        except DuplicateUserError:
            logger.info("Registration rejected: user registered concurrently", username=username)
            raise UserExistsError(USER_EXISTS_MESSAGE)
        except Exception as e:
            logger.error(
                "Storage operation failed",
                backend=self.storage.name,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            raise classify_error(e, STORAGE_ERROR_PATTERNS, STORAGE_ERROR_DEFAULT) from e

        logger.info("Registration completed", username=username)
        return result

    @staticmethod
    def _parse_credentials(body: bytes) -> tuple[str, str]:
        try:
            data: Any = json.loads(body or b"")
        except ValueError as e:
            logger.info("Registration rejected: body is not JSON", error=str(e))
            raise InvalidRequestError("Malformed request") from e

        if not isinstance(data, dict):
            raise InvalidRequestError("Malformed request")

        username = data.get("username")
        password = data.get("password")
        logger.info(
            "Request parsed",
            username=username if isinstance(username, str) else None,
            password_length=len(password) if isinstance(password, str) else None,
        )

        if not username or not isinstance(username, str):
            raise InvalidRequestError("Username cannot be empty")
        if not password or not isinstance(password, str):
            raise InvalidRequestError("Password cannot be empty")
        return username, password
