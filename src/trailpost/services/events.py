"""Post-commit side effects: notifications and audit records.

Dispatchers and sinks are collaborators; the core only hands them plain
events once a transaction has committed. Their failures are logged and
never propagate back into the operation that emitted them.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from trailpost.db.time import utcnow

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("trailpost.audit")


class NotificationKind(str, enum.Enum):
    """Kinds of notification the core emits."""

    COMMENT = "comment"
    COMMENT_REPLY = "comment_reply"
    FLAG_REVIEWED = "flag_reviewed"
    LIKE = "like"
    FOLLOW = "follow"


@dataclass(frozen=True)
class NotificationEvent:
    """Abstract notification addressed to one account."""

    kind: NotificationKind
    target_user_id: int
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditRecord:
    """A moderation action worth keeping a trail of."""

    actor_id: int
    action: str
    target_id: int
    flag_id: str | None = None
    timestamp: datetime = field(default_factory=utcnow)


class NotificationDispatcher(Protocol):
    """Delivers notification events; formatting and retry are its concern."""

    def dispatch(self, event: NotificationEvent) -> None: ...


class AuditSink(Protocol):
    """Persists audit records in whatever format it chooses."""

    def record(self, entry: AuditRecord) -> None: ...


class LoggingNotificationDispatcher:
    """Default dispatcher that only logs the event."""

    def dispatch(self, event: NotificationEvent) -> None:
        logger.info(
            "Notification %s for account %s: %s",
            event.kind.value,
            event.target_user_id,
            dict(event.context),
        )


class LoggingAuditSink:
    """Default sink writing ``[AUDIT]`` lines to the ``trailpost.audit`` logger."""

    def record(self, entry: AuditRecord) -> None:
        audit_logger.info(
            "[AUDIT] Admin %s %s %s via flag %s at %s",
            entry.actor_id,
            entry.action,
            entry.target_id,
            entry.flag_id,
            entry.timestamp.isoformat(),
        )


def emit_notifications(
    dispatcher: NotificationDispatcher,
    events: list[NotificationEvent],
) -> None:
    """Dispatch events best-effort after commit."""
    for event in events:
        try:
            dispatcher.dispatch(event)
        except Exception:
            logger.exception(
                "Failed to dispatch %s notification to account %s",
                event.kind.value,
                event.target_user_id,
            )


def emit_audit(sink: AuditSink, entries: list[AuditRecord]) -> None:
    """Record audit entries best-effort after commit."""
    for entry in entries:
        try:
            sink.record(entry)
        except Exception:
            logger.exception("Failed to record audit entry %s for %s", entry.action, entry.flag_id)
