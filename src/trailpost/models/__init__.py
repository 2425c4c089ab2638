# src/trailpost/models/__init__.py
"""SQLAlchemy models for the Trailpost core."""

from .comment import Comment
from .flag import Flag, FlagActionType, FlagCategory, FlagStatus
from .post import Post
from .reaction import AccountFollow, PostBookmark, PostLike
from .user import Account

__all__ = [
    "Account",
    "AccountFollow",
    "Comment",
    "Flag", "FlagActionType", "FlagCategory", "FlagStatus",
    "Post",
    "PostBookmark", "PostLike",
]
