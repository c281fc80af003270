from __future__ import annotations

from datetime import date

from sqlmodel import Session, col, select

from tasknest.db.enums import TaskStatus
from tasknest.db.models import Folder, Task, utc_now
from tasknest.db.repositories.common import commit_or_raise


class TaskRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, task_id: int) -> Task | None:
        return self.session.get(Task, task_id)

    def get_owned(self, task_id: int, *, owner_id: int) -> Task | None:
        statement = (
            select(Task)
            .join(Folder, col(Folder.id) == col(Task.folder_id))
            .where(Task.id == task_id)
            .where(Folder.user_id == owner_id)
        )
        return self.session.exec(statement).first()

    def get_in_folder(self, task_id: int, *, folder_id: int) -> Task | None:
        statement = select(Task).where(Task.id == task_id).where(Task.folder_id == folder_id)
        return self.session.exec(statement).first()

    def list_for_folder(self, *, folder_id: int) -> list[Task]:
        statement = (
            select(Task)
            .where(Task.folder_id == folder_id)
            .order_by(col(Task.due_date), col(Task.id))
        )
        return list(self.session.exec(statement).all())

    def create(self, task: Task) -> Task:
        self.session.add(task)
        commit_or_raise(self.session)
        self.session.refresh(task)
        return task

    def update(
        self,
        task: Task,
        *,
        title: str,
        status: TaskStatus,
        due_date: date,
    ) -> Task:
        task.title = title
        task.status = status
        task.due_date = due_date
        task.updated_at = utc_now()
        self.session.add(task)
        commit_or_raise(self.session)
        self.session.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        self.session.delete(task)
        commit_or_raise(self.session)
