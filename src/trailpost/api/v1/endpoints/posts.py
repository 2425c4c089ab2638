"""Post reaction and comment endpoints for the Trailpost API."""

from fastapi import APIRouter, Query, status

from trailpost.api.v1.dependencies import CommentThreadDep, CurrentActorDep, ReactionCounterDep
from trailpost.schemas.comment import (
    CommentCreate,
    CommentDetail,
    CommentListResponse,
    CommentsToggleResponse,
)
from trailpost.schemas.reaction import ToggleResponse

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("/{post_id}/like", response_model=ToggleResponse)
async def like_post(
    post_id: str,
    current_actor: CurrentActorDep,
    reactions: ReactionCounterDep,
) -> ToggleResponse:
    """Toggle the current actor's like on a post."""
    return reactions.toggle_like(current_actor, post_id)


@router.post("/{post_id}/bookmark", response_model=ToggleResponse)
async def bookmark_post(
    post_id: str,
    current_actor: CurrentActorDep,
    reactions: ReactionCounterDep,
) -> ToggleResponse:
    """Toggle the current actor's bookmark on a post."""
    return reactions.toggle_bookmark(current_actor, post_id)


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_comments(
    post_id: str,
    current_actor: CurrentActorDep,
    comments: CommentThreadDep,
    cursor: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=100),
) -> CommentListResponse:
    """List top-level comments on a post with their replies."""
    return comments.list_comments(post_id, current_actor, cursor=cursor, limit=limit)


@router.post(
    "/{post_id}/comments",
    response_model=CommentDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: str,
    payload: CommentCreate,
    current_actor: CurrentActorDep,
    comments: CommentThreadDep,
) -> CommentDetail:
    """Comment on a post, or reply to a top-level comment."""
    return comments.create(post_id, current_actor, payload.content, payload.parent_id)


@router.post("/{post_id}/comments/toggle", response_model=CommentsToggleResponse)
async def toggle_comments(
    post_id: str,
    current_actor: CurrentActorDep,
    comments: CommentThreadDep,
) -> CommentsToggleResponse:
    """Enable or disable comments on one of the actor's posts."""
    return comments.toggle_comments(post_id, current_actor)
