# Overview: Service-layer transaction helpers; one unit of work commits or rolls back as a whole.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db


@contextmanager
def atomic(session=None):
    """
    Run a block as one transaction.

    Commits when the block finishes, rolls back on any exception. A unique or
    check constraint violation (a concurrent writer won the race) surfaces as
    ConflictError; every other exception is re-raised unchanged.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(
            "Conflicting change detected, nothing was saved",
            details={"constraint": str(getattr(exc, "orig", exc))},
        ) from exc
    except Exception:
        session.rollback()
        raise
