from __future__ import annotations

from collections.abc import Generator

from sqlmodel import Session

from tasknest.db.engine import get_engine


def get_session() -> Generator[Session, None, None]:
    """Request-scoped ORM session; closed when the response is sent."""
    with Session(get_engine()) as session:
        yield session
