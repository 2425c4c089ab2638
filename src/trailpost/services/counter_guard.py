"""Floor-protected adjustment of denormalized counters.

Every counter change in the core goes through :class:`CounterGuard` so the
arithmetic happens inside the UPDATE statement rather than in Python. A
guarded decrement carries its precondition in the WHERE clause, which makes
it safe against a decrement racing ahead of its paired increment and against
duplicate application: when the stored value is already zero the statement
matches no row and the call is a silent no-op.
"""

from __future__ import annotations

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from trailpost.db.session import Base


class CounterGuard:
    """Apply signed deltas to integer counter columns."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def adjust(
        self,
        model: type[Base],
        target_id: int,
        field: str,
        delta: int,
        *,
        floor_guard: bool = True,
    ) -> bool:
        """Add ``delta`` to ``model.field`` on the row ``target_id``.

        Args:
            model: Mapped class owning the counter.
            target_id: Primary key of the row to adjust.
            field: Name of the counter column.
            delta: Signed amount; zero is a no-op.
            floor_guard: For negative deltas, require the stored value to be
                above zero and clamp the result at zero.

        Returns:
            True if a row was updated, False if the guard (or a missing row)
            turned the adjustment into a no-op.
        """
        if delta == 0:
            return False

        column = getattr(model, field)
        stmt = update(model).where(model.id == target_id)

        if delta < 0 and floor_guard:
            amount = -delta
            stmt = stmt.where(column > 0).values(
                {column: case((column >= amount, column - amount), else_=0)}
            )
        else:
            stmt = stmt.values({column: column + delta})

        result = self._db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount > 0

    def increment(self, model: type[Base], target_id: int, field: str, amount: int = 1) -> bool:
        """Unguarded increment; increments never need a precondition."""
        return self.adjust(model, target_id, field, amount, floor_guard=False)

    def decrement(self, model: type[Base], target_id: int, field: str, amount: int = 1) -> bool:
        """Floor-protected decrement."""
        return self.adjust(model, target_id, field, -amount, floor_guard=True)

    def current(self, model: type[Base], target_id: int, field: str) -> int:
        """Read the stored counter value, bypassing the identity map."""
        value = self._db.execute(
            select(getattr(model, field)).where(model.id == target_id)
        ).scalar_one_or_none()
        return int(value or 0)
