"""
Record-store helpers over the Flask-SQLAlchemy session.

Keys are passed as column keyword arguments, e.g.
``exists(Like, user_id=1, movie_id="27205")``.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError

from cinesocial.errors import ActivityError, AlreadyExists
from cinesocial.logging_config import get_logger
from cinesocial.models import db

logger = get_logger(__name__)


def exists(model, **keys) -> bool:
    return db.session.query(model.query.filter_by(**keys).exists()).scalar()


def find_one(model, **keys):
    return model.query.filter_by(**keys).order_by(model.id.asc()).first()


def find_all(model, **keys) -> List:
    return model.query.filter_by(**keys).order_by(model.id.asc()).all()


def find_all_by_user_desc(model, user_id: int) -> List:
    """All rows owned by ``user_id``, newest first."""
    return (
        model.query.filter_by(user_id=user_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .all()
    )


def delete_where(model, **keys) -> int:
    """Delete matching rows in the current transaction; returns the row count."""
    return model.query.filter_by(**keys).delete(synchronize_session="fetch")


def count(model, **keys) -> int:
    return model.query.filter_by(**keys).count()


@contextmanager
def atomic(operation: str, conflict_message: Optional[str] = None, **keys) -> Iterator:
    """
    Run one write operation as a single transaction.

    Commits on success and rolls back on any error. A unique-constraint
    violation (a concurrent duplicate that slipped past the existence check)
    becomes AlreadyExists. Unexpected faults are logged with the operation
    and keys, then re-raised.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("write_conflict", operation=operation, **keys)
        raise AlreadyExists(conflict_message or f"{operation}: record already exists", **keys) from e
    except ActivityError:
        db.session.rollback()
        raise
    except Exception:
        db.session.rollback()
        logger.error("write_failed", operation=operation, exc_info=True, **keys)
        raise
