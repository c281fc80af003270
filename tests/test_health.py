from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from pytest import MonkeyPatch
from sqlalchemy import inspect
from sqlmodel import Session, select

from tasknest.api import health as health_api
from tasknest.core.config import get_settings
from tasknest.db.engine import create_engine_from_url, dispose_engine
from tasknest.db.models import Folder, Task, User
from tasknest.db.seed import DEFAULT_USER_EMAIL
from tasknest.main import create_app


def _to_sqlite_url(path: Path) -> str:
    return f"sqlite:///{path.as_posix()}"


@pytest.fixture
def health_client(tmp_path: Path, monkeypatch: MonkeyPatch) -> Iterator[TestClient]:
    db_url = _to_sqlite_url(tmp_path / "health.db")
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.delenv("DB_AUTO_INIT", raising=False)
    monkeypatch.delenv("DB_AUTO_SEED", raising=False)
    get_settings.cache_clear()
    dispose_engine()

    with TestClient(create_app()) as client:
        yield client

    dispose_engine()
    get_settings.cache_clear()


def test_healthz(health_client: TestClient) -> None:
    response = health_client.get("/healthz")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "Tasknest"
    assert payload["env"] in {"development", "test", "production"}


def test_readyz(health_client: TestClient) -> None:
    response = health_client.get("/readyz")

    assert response.status_code == 200
    payload = response.json()
    assert payload == {
        "status": "ready",
        "checks": {"configuration": "ok", "database": "ok"},
    }


def test_readyz_reports_unavailable_database(
    health_client: TestClient,
    tmp_path: Path,
    monkeypatch: MonkeyPatch,
) -> None:
    unreachable = create_engine_from_url(
        _to_sqlite_url(tmp_path / "missing-dir" / "nested" / "ready.db")
    )
    monkeypatch.setattr(health_api, "get_engine", lambda: unreachable)

    try:
        response = health_client.get("/readyz")
    finally:
        unreachable.dispose()

    assert response.status_code == 503
    assert response.json() == {
        "status": "not_ready",
        "checks": {"configuration": "ok", "database": "unavailable"},
    }


def test_trace_id_header_is_generated_and_echoed(health_client: TestClient) -> None:
    generated = health_client.get("/healthz")
    echoed = health_client.get("/healthz", headers={"X-Trace-ID": "trace-from-caller"})

    assert generated.headers["X-Trace-ID"].startswith("trace-http-")
    assert echoed.headers["X-Trace-ID"] == "trace-from-caller"


def test_unknown_route_returns_error_envelope(health_client: TestClient) -> None:
    response = health_client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_startup_auto_initializes_database_in_development(
    tmp_path: Path,
    monkeypatch: MonkeyPatch,
) -> None:
    db_url = _to_sqlite_url(tmp_path / "auto-init.db")
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.delenv("DB_AUTO_INIT", raising=False)
    monkeypatch.delenv("DB_AUTO_SEED", raising=False)
    get_settings.cache_clear()
    dispose_engine()

    with TestClient(create_app()) as client:
        response = client.get("/readyz")
        assert response.status_code == 200

    engine = create_engine_from_url(db_url)
    try:
        table_names = set(inspect(engine).get_table_names())
        assert {"users", "folders", "tasks", "alembic_version"} <= table_names

        with Session(engine) as session:
            user = session.exec(select(User).where(User.email == DEFAULT_USER_EMAIL)).one()
            folders = session.exec(select(Folder).where(Folder.user_id == user.id)).all()
            assert {folder.title for folder in folders} == {"Private", "Work"}
            assert session.exec(select(Task)).first() is not None
    finally:
        engine.dispose()
        dispose_engine()
        get_settings.cache_clear()


def test_startup_skips_database_init_in_test_env(
    tmp_path: Path,
    monkeypatch: MonkeyPatch,
) -> None:
    db_path = tmp_path / "skipped.db"
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", _to_sqlite_url(db_path))
    monkeypatch.delenv("DB_AUTO_INIT", raising=False)
    get_settings.cache_clear()
    dispose_engine()

    try:
        with TestClient(create_app()) as client:
            assert client.get("/healthz").status_code == 200

        engine = create_engine_from_url(_to_sqlite_url(db_path))
        try:
            assert "tasks" not in set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
    finally:
        dispose_engine()
        get_settings.cache_clear()
