# src/trailpost/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import accounts_router, comments_router, flags_router, posts_router

__all__ = [
    "accounts_router",
    "comments_router",
    "flags_router",
    "posts_router",
]
