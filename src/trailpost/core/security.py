"""Actor identity and capability checks used at service entry points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from jose import jwt

from trailpost.core.errors import ForbiddenError, UnauthorizedError
from trailpost.core.roles import UserRole
from trailpost.core.settings import settings
from trailpost.db.time import utcnow


@dataclass(frozen=True)
class Actor:
    """The resolved identity of whoever issued the current request.

    The core never resolves credentials itself; the request layer builds an
    ``Actor`` and hands it to the services.
    """

    actor_id: int | None
    role: UserRole = UserRole.USER

    @classmethod
    def anonymous(cls) -> Actor:
        """Return an unauthenticated actor."""
        return cls(actor_id=None)

    @property
    def authenticated(self) -> bool:
        return self.actor_id is not None

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.role == UserRole.ADMIN


def require_authenticated(actor: Actor, message: str | None = None) -> int:
    """Return the actor id or raise ``UnauthorizedError``."""
    if actor.actor_id is None:
        raise UnauthorizedError(message or "You must be logged in")
    return actor.actor_id


def require_admin(actor: Actor, message: str | None = None) -> int:
    """Return the actor id when the actor holds the reviewer capability.

    Raises:
        UnauthorizedError: If the actor is anonymous.
        ForbiddenError: If the actor is authenticated without the admin role.
    """
    actor_id = require_authenticated(actor)
    if not actor.is_admin:
        raise ForbiddenError(message or "Only admins can perform this action")
    return actor_id


def create_access_token(account_id: int, expires_minutes: int = 60 * 24) -> str:
    """Issue a signed bearer token whose subject is the account id."""
    expire = utcnow() + timedelta(minutes=expires_minutes)
    payload = {"sub": str(account_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the account id carried by a bearer token, or ``None`` if absent."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if subject is None:
        return None
    return int(subject)
