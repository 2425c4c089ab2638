# src/trailpost/schemas/__init__.py
"""
Pydantic schemas for service results and API request bodies.

These schemas define the structure of data crossing the service boundary.
"""

from .comment import (
    CommentAuthor,
    CommentCreate,
    CommentDetail,
    CommentListResponse,
    CommentsToggleResponse,
    CommentUpdate,
)
from .flag import (
    FlagAccountSummary,
    FlagCreate,
    FlagCreateResponse,
    FlagContentSummary,
    FlagDetail,
    FlagListResponse,
    FlagReview,
)
from .reaction import ToggleResponse

__all__ = [
    "CommentAuthor", "CommentCreate", "CommentDetail", "CommentListResponse",
    "CommentsToggleResponse", "CommentUpdate",
    "FlagAccountSummary", "FlagContentSummary", "FlagCreate", "FlagCreateResponse",
    "FlagDetail", "FlagListResponse", "FlagReview",
    "ToggleResponse",
]
