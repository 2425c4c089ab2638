# src/trailpost/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .accounts import router as accounts_router
from .comments import router as comments_router
from .flags import router as flags_router
from .posts import router as posts_router

__all__ = [
    "accounts_router",
    "comments_router",
    "flags_router",
    "posts_router",
]
