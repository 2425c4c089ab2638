# src/trailpost/schemas/comment.py
"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """Schema for creating a new comment or reply."""

    content: str = Field(..., min_length=1, description="Comment text")
    parent_id: str | None = Field(None, description="Public id of the comment being replied to")


class CommentUpdate(BaseModel):
    """Schema for editing a comment."""

    content: str = Field(..., min_length=1, description="Replacement comment text")


class CommentAuthor(BaseModel):
    """Public summary of a comment author."""

    username: str
    creator: bool = False


class CommentDetail(BaseModel):
    """Schema for comment information returned by the services."""

    id: str
    content: str
    created_at: datetime
    updated_at: datetime
    author: CommentAuthor
    created_by_me: bool
    parent_id: str | None = None
    replies_count: int | None = None
    replies: list[CommentDetail] | None = None


class CommentListResponse(BaseModel):
    """A page of top-level comments with their replies."""

    data: list[CommentDetail]
    count: int
    has_more: bool
    next_cursor: str | None = None


class CommentsToggleResponse(BaseModel):
    """Whether comments are enabled on a post after toggling."""

    comments_enabled: bool
