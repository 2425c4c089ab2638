"""Comment editing and deletion endpoints for the Trailpost API."""

from fastapi import APIRouter

from trailpost.api.v1.dependencies import CommentThreadDep, CurrentActorDep
from trailpost.schemas.comment import CommentDetail, CommentUpdate

router = APIRouter(prefix="/comments", tags=["comments"])


@router.put("/{comment_id}", response_model=CommentDetail)
async def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    current_actor: CurrentActorDep,
    comments: CommentThreadDep,
) -> CommentDetail:
    """Edit one of the actor's comments."""
    return comments.update(comment_id, current_actor, payload.content)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_actor: CurrentActorDep,
    comments: CommentThreadDep,
) -> dict[str, bool]:
    """Delete a comment (author or admin); top-level deletes cascade to replies."""
    return {"success": comments.delete(comment_id, current_actor)}
