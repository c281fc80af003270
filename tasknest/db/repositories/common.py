from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session


class RepositoryConflictError(RuntimeError):
    """Raised when a write violates a database constraint."""


def commit_or_raise(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise RepositoryConflictError("write violates a database constraint") from exc
