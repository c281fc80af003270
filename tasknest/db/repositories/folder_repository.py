from __future__ import annotations

from sqlmodel import Session, col, select

from tasknest.db.models import Folder


class FolderRepository:
    """Folder lookups; every query is scoped to an explicit owner."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_owner(self, *, owner_id: int) -> list[Folder]:
        statement = select(Folder).where(Folder.user_id == owner_id).order_by(col(Folder.id))
        return list(self.session.exec(statement).all())

    def get_owned(self, folder_id: int, *, owner_id: int) -> Folder | None:
        statement = select(Folder).where(Folder.id == folder_id).where(Folder.user_id == owner_id)
        return self.session.exec(statement).first()
