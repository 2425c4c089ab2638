"""Shared API dependencies for actor resolution and service construction."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from trailpost.core.security import Actor, decode_access_token
from trailpost.db.session import get_db
from trailpost.models import Account
from trailpost.services import CommentThread, FlagLedger, ReactionCounter

# Anonymous requests are allowed through; each service decides what it needs.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> Actor:
    """Resolve the requesting actor from an optional Bearer token.

    Args:
        credentials: HTTP Bearer token credentials, if any
        db: Database session

    Returns:
        The authenticated actor, or an anonymous one when no token is sent

    Raises:
        HTTPException: If a token is present but invalid or names no account
    """
    if credentials is None:
        return Actor.anonymous()

    try:
        account_id = decode_access_token(credentials.credentials)
    except (JWTError, ValueError) as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    account = db.get(Account, account_id) if account_id is not None else None
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
        )
    return Actor(actor_id=account.id, role=account.role)


def get_reaction_counter(db: SessionDep) -> ReactionCounter:
    """Return a reaction service bound to the request session."""
    return ReactionCounter(db)


def get_comment_thread(db: SessionDep) -> CommentThread:
    """Return a comment service bound to the request session."""
    return CommentThread(db)


def get_flag_ledger(db: SessionDep) -> FlagLedger:
    """Return a flag service bound to the request session."""
    return FlagLedger(db)


# Type aliases for dependencies used by the endpoints
CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]
ReactionCounterDep = Annotated[ReactionCounter, Depends(get_reaction_counter)]
CommentThreadDep = Annotated[CommentThread, Depends(get_comment_thread)]
FlagLedgerDep = Annotated[FlagLedger, Depends(get_flag_ledger)]
