from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pytest import MonkeyPatch
from sqlmodel import Session, SQLModel

from tasknest.core.config import get_settings
from tasknest.db.engine import create_engine_from_url, dispose_engine
from tasknest.db.enums import TaskStatus
from tasknest.db.models import Folder, Task, User
from tasknest.main import create_app
from tests.shared import ApiTestContext


def _to_sqlite_url(path: Path) -> str:
    return f"sqlite:///{path.as_posix()}"


@pytest.fixture
def api_context(tmp_path: Path, monkeypatch: MonkeyPatch) -> Iterator[ApiTestContext]:
    """
    Creates a temporary SQLite database and a test client.
    Seeds two users: the first owns two folders and one task, the second owns one folder.
    Requests authenticate as the first user unless the test switches with `act_as`.
    """
    db_url = _to_sqlite_url(tmp_path / "api-integration.db")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", db_url)
    get_settings.cache_clear()
    dispose_engine()

    engine = create_engine_from_url(db_url)
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        owner = User(name="Owner", email="owner@example.com")
        intruder = User(name="Intruder", email="intruder@example.com")
        session.add(owner)
        session.add(intruder)
        session.commit()
        session.refresh(owner)
        session.refresh(intruder)
        assert owner.id is not None
        assert intruder.id is not None

        private = Folder(user_id=owner.id, title="Private")
        work = Folder(user_id=owner.id, title="Work")
        foreign = Folder(user_id=intruder.id, title="Elsewhere")
        session.add(private)
        session.add(work)
        session.add(foreign)
        session.commit()
        session.refresh(private)
        session.refresh(work)
        session.refresh(foreign)
        assert private.id is not None
        assert work.id is not None
        assert foreign.id is not None

        task = Task(
            folder_id=private.id,
            title="Draft report",
            status=TaskStatus.NOT_STARTED,
            due_date=date(2030, 1, 10),
        )
        session.add(task)
        session.commit()
        session.refresh(task)
        assert task.id is not None

        ids = (owner.id, intruder.id, private.id, work.id, foreign.id, task.id)

    app = create_app()
    with TestClient(app) as client:
        context = ApiTestContext(
            app=app,
            client=client,
            engine=engine,
            user_id=ids[0],
            other_user_id=ids[1],
            folder_id=ids[2],
            second_folder_id=ids[3],
            other_folder_id=ids[4],
            task_id=ids[5],
        )
        context.act_as(context.user_id)
        yield context

    app.dependency_overrides.clear()
    engine.dispose()
    dispose_engine()
    get_settings.cache_clear()
