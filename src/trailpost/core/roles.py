"""Account roles recognised by the core."""

import enum


class UserRole(str, enum.Enum):
    """Roles an account can hold; only ADMIN carries moderation authority."""

    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"
