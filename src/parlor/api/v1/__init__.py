"""Version 1 API endpoints."""

from .endpoints import dm_router, realtime_router

__all__ = [
    "dm_router",
    "realtime_router",
]
