"""
FastAPI dependencies for dependency injection.

Provides the instances created by the application factory to route
handlers. Everything lives on `app.state`, so each app (and each test)
carries its own settings and storage.
"""

from typing import Optional

from fastapi import Depends, Request

from core.config import Settings
from core.storage.base import BaseStorage
from manager.registration import RegistrationManager


async def get_app_settings(request: Request) -> Settings:
    """
    Dependency that provides the application settings.

    Usage:
        @router.get("/debug")
        async def debug(settings: Settings = Depends(get_app_settings)):
            ...
    """
    return request.app.state.settings


async def get_storage(request: Request) -> Optional[BaseStorage]:
    """
    Dependency that provides the storage backend.

    None when the service runs without server-side storage.
    """
    return request.app.state.storage


async def get_registration_manager(
    settings: Settings = Depends(get_app_settings),
    storage: Optional[BaseStorage] = Depends(get_storage),
) -> RegistrationManager:
    return RegistrationManager(settings, storage)
