"""
API routers.
"""

from .activity import router as activity_router
from .debug import router as debug_router
from .health import router as health_router

__all__ = ["activity_router", "debug_router", "health_router"]
