"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.admin_config import AdminConfig, UserConfig
from core.config import Settings
from core.storage.memory import InMemoryStorage


ADMIN_PASSWORD = "admin-secret"

# Every field is passed explicitly so the host environment (which often
# defines USERNAME) and any .env file never leak into a test.
_BASE_SETTINGS = {
    "storage_type": "redis",
    "redis_url": "redis://localhost:6379",
    "upstash_url": None,
    "upstash_token": None,
    "d1_database_id": None,
    "d1_account_id": None,
    "d1_api_token": None,
    "username": "admin",
    "password": ADMIN_PASSWORD,
    "enable_register": True,
    "site_name": "MoonTV",
    "debug_key": None,
    "docker_env": False,
    "environment": "production",
    "debug": False,
}


def build_settings(**overrides) -> Settings:
    values = {**_BASE_SETTINGS, **overrides}
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    """Factory for isolated Settings instances."""
    return build_settings


@pytest.fixture
def settings():
    """Valid settings for a Redis deployment with registration enabled."""
    return build_settings()


@pytest.fixture
def open_config():
    """Admin configuration that allows registration."""
    return AdminConfig(user_config=UserConfig(allow_register=True))


@pytest.fixture
def storage(open_config):
    """In-memory storage with registration open."""
    return InMemoryStorage(config=open_config)
