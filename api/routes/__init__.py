"""
API route modules.
"""

from api.routes.debug import router as debug_router
from api.routes.health import router as health_router
from api.routes.register import router as register_router

__all__ = ["debug_router", "health_router", "register_router"]
