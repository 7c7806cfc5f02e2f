"""Aggregate router exports."""
from .feed import router as feed_router
from .follows import router as follows_router
from .profiles import router as profiles_router
from .settings import router as settings_router
from .system import router as system_router

__all__ = [
    "feed_router",
    "follows_router",
    "profiles_router",
    "settings_router",
    "system_router",
]
