# src/trailpost/schemas/flag.py
"""Flag-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from trailpost.models.flag import FlagActionType, FlagCategory, FlagStatus


class FlagCreate(BaseModel):
    """Schema for reporting a post or a comment."""

    category: FlagCategory
    description: str | None = Field(None, description="Free-text reason")
    flagged_post_id: str | None = Field(None, description="Public id of the reported post")
    flagged_comment_id: str | None = Field(None, description="Public id of the reported comment")


class FlagCreateResponse(BaseModel):
    """Identifier of a freshly created flag."""

    id: str


class FlagReview(BaseModel):
    """Schema for an admin review of a flag."""

    status: FlagStatus
    action_taken: FlagActionType | None = None
    admin_notes: str | None = None


class FlagAccountSummary(BaseModel):
    """Username-only view of an account referenced by a flag."""

    username: str


class FlagContentSummary(BaseModel):
    """Preview of the content a flag points at."""

    type: Literal["post", "comment"]
    id: str
    preview: str
    author: FlagAccountSummary
    deleted: bool = False


class FlagDetail(BaseModel):
    """Schema for flag information returned to admins."""

    id: str
    category: FlagCategory
    description: str | None = None
    status: FlagStatus
    action_taken: FlagActionType | None = None
    admin_notes: str | None = None
    created_at: datetime
    reviewed_at: datetime | None = None
    reporter: FlagAccountSummary
    reviewed_by: FlagAccountSummary | None = None
    flagged_content: FlagContentSummary


class FlagListResponse(BaseModel):
    """A page of flags plus the total matching the filter."""

    flags: list[FlagDetail]
    total: int
