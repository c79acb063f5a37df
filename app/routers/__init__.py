"""Aggregate router exports."""
from .friends import router as friends_router
from .profiles import router as profiles_router

__all__ = [
    "friends_router",
    "profiles_router",
]
