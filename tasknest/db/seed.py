from __future__ import annotations

from datetime import date, timedelta

from sqlmodel import Session, select

from tasknest.core.logging import get_logger
from tasknest.db.enums import TaskStatus
from tasknest.db.models import Folder, Task, User, persisted_id

DEFAULT_USER_NAME = "Demo User"
DEFAULT_USER_EMAIL = "demo@tasknest.local"

# (folder title, ((task title, status, due in days), ...))
SeedTask = tuple[str, TaskStatus, int]
DEFAULT_FOLDERS: tuple[tuple[str, tuple[SeedTask, ...]], ...] = (
    (
        "Private",
        (
            ("Buy groceries", TaskStatus.NOT_STARTED, 1),
            ("Renew passport", TaskStatus.IN_PROGRESS, 14),
        ),
    ),
    (
        "Work",
        (
            ("Draft report", TaskStatus.NOT_STARTED, 3),
            ("Review pull requests", TaskStatus.DONE, 0),
        ),
    ),
)

logger = get_logger("tasknest.db.seed")


def seed_initial_data(session: Session, *, today: date | None = None) -> User:
    """Create the demo user with sample folders and tasks; safe to run repeatedly."""
    base_day = today or date.today()

    user = session.exec(select(User).where(User.email == DEFAULT_USER_EMAIL)).first()
    if user is None:
        user = User(name=DEFAULT_USER_NAME, email=DEFAULT_USER_EMAIL)
        session.add(user)
        session.flush()
    user_id = persisted_id(user)

    existing_titles = set(
        session.exec(select(Folder.title).where(Folder.user_id == user_id)).all()
    )
    for title, tasks in DEFAULT_FOLDERS:
        if title in existing_titles:
            continue
        folder = Folder(user_id=user_id, title=title)
        session.add(folder)
        session.flush()
        for task_title, status, due_in_days in tasks:
            session.add(
                Task(
                    folder_id=persisted_id(folder),
                    title=task_title,
                    status=status,
                    due_date=base_day + timedelta(days=due_in_days),
                )
            )

    session.commit()
    session.refresh(user)
    logger.info("db.seeded", user_id=user.id)
    return user
