"""Follow endpoints for the Trailpost API."""

from fastapi import APIRouter

from trailpost.api.v1.dependencies import CurrentActorDep, ReactionCounterDep
from trailpost.schemas.reaction import ToggleResponse

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("/{username}/follow", response_model=ToggleResponse)
async def follow_account(
    username: str,
    current_actor: CurrentActorDep,
    reactions: ReactionCounterDep,
) -> ToggleResponse:
    """Follow an account."""
    return reactions.follow(current_actor, username)


@router.post("/{username}/unfollow", response_model=ToggleResponse)
async def unfollow_account(
    username: str,
    current_actor: CurrentActorDep,
    reactions: ReactionCounterDep,
) -> ToggleResponse:
    """Stop following an account."""
    return reactions.unfollow(current_actor, username)
