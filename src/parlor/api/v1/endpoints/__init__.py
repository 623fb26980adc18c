"""API endpoint modules for version 1."""

from .dm import router as dm_router
from .realtime import router as realtime_router

__all__ = [
    "dm_router",
    "realtime_router",
]
