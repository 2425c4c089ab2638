# src/trailpost/services/__init__.py
"""Business logic services for the Trailpost core."""

from .comments import CommentThread
from .content import ContentLookup
from .counter_guard import CounterGuard
from .flags import FlagLedger
from .reactions import ReactionCounter

__all__ = [
    "CommentThread",
    "ContentLookup",
    "CounterGuard",
    "FlagLedger",
    "ReactionCounter",
]
