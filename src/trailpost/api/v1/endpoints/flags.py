"""Flag reporting and review endpoints for the Trailpost API."""

from fastapi import APIRouter, Query, status

from trailpost.api.v1.dependencies import CurrentActorDep, FlagLedgerDep
from trailpost.models.flag import FlagStatus
from trailpost.schemas.flag import (
    FlagCreate,
    FlagCreateResponse,
    FlagDetail,
    FlagListResponse,
    FlagReview,
)

router = APIRouter(prefix="/flags", tags=["flags"])


@router.post("/", response_model=FlagCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_flag(
    payload: FlagCreate,
    current_actor: CurrentActorDep,
    flags: FlagLedgerDep,
) -> FlagCreateResponse:
    """Report a post or a comment."""
    return flags.create_flag(
        current_actor,
        payload.category,
        description=payload.description,
        flagged_post_id=payload.flagged_post_id,
        flagged_comment_id=payload.flagged_comment_id,
    )


@router.get("/", response_model=FlagListResponse)
async def list_flags(
    current_actor: CurrentActorDep,
    flags: FlagLedgerDep,
    status_filter: FlagStatus | None = Query(None, alias="status"),
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> FlagListResponse:
    """List flags for review (admin only)."""
    return flags.list_flags(current_actor, status=status_filter, limit=limit, offset=offset)


@router.get("/{flag_id}", response_model=FlagDetail)
async def get_flag(
    flag_id: str,
    current_actor: CurrentActorDep,
    flags: FlagLedgerDep,
) -> FlagDetail:
    """Return a single flag (admin only)."""
    return flags.get_flag(current_actor, flag_id)


@router.put("/{flag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def review_flag(
    flag_id: str,
    payload: FlagReview,
    current_actor: CurrentActorDep,
    flags: FlagLedgerDep,
) -> None:
    """Dismiss or action a flag (admin only)."""
    flags.review_flag(
        flag_id,
        current_actor,
        payload.status,
        action_taken=payload.action_taken,
        admin_notes=payload.admin_notes,
    )
