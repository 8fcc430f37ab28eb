"""Aggregate router exports."""
from .auth import router as auth_router
from .friends import router as friends_router
from .posts import router as posts_router
from .realtime import router as realtime_router
from .saved import router as saved_router

__all__ = [
    "auth_router",
    "friends_router",
    "posts_router",
    "realtime_router",
    "saved_router",
]
