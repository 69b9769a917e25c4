"""
Database setup script.

Creates the D1 tables and seeds the admin configuration when none is
stored yet. Redis and Upstash need no schema; for them the script only
seeds the admin configuration.

Usage:
    python -m scripts.setup_db
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.admin_config import AdminConfig
from core.config import get_settings
from core.storage import create_storage
from core.storage.d1 import D1Storage
from core.validation import validate_environment


async def setup_database():
    """Create tables (D1) and the initial admin configuration."""
    settings = get_settings()

    print(f"Storage type: {settings.storage_type}")

    validation = validate_environment(settings)
    if not validation.valid:
        for error in validation.errors:
            print(f"Error: {error}")
        raise SystemExit(1)

    storage = create_storage(settings)
    if storage is None:
        print("No server-side storage for this storage type, nothing to do")
        return

    await storage.setup()
    try:
        if isinstance(storage, D1Storage):
            print("Creating D1 tables...")
            await storage.ensure_schema()
            print("D1 tables ready")

        if await storage.get_admin_config() is None:
            print("Seeding admin configuration...")
            await storage.save_admin_config(AdminConfig.default(settings))
            print("Admin configuration saved")
        else:
            print("Admin configuration already exists")

        print("Database setup complete!")

    except Exception as e:
        print(f"Error setting up database: {e}")
        raise
    finally:
        await storage.close()


if __name__ == "__main__":
    asyncio.run(setup_database())
