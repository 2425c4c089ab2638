"""Unit-of-work boundary shared by every mutating service operation."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from trailpost.core.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Run the enclosed block as one transaction.

    Commits when the block exits cleanly. Any exception rolls the whole
    transaction back. Constraint violations surface as ``ConflictError`` and
    other SQLAlchemy errors as ``StorageError``; service errors raised
    mid-transaction propagate unchanged.

    Args:
        db: Session the block operates on.

    Yields:
        The same session, for convenience.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Transaction rolled back after constraint violation: %s", exc.orig)
        raise ConflictError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Transaction rolled back after storage failure: %s", exc)
        raise StorageError() from exc
    except BaseException:
        db.rollback()
        raise
