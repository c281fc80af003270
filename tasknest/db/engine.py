from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import URL, Engine, make_url
from sqlmodel import create_engine

from tasknest.core.config import get_settings, resolve_sqlalchemy_echo

_engine: Engine | None = None


def _is_sqlite(url: URL) -> bool:
    return url.drivername.split("+", maxsplit=1)[0] == "sqlite"


def create_engine_from_url(database_url: str, *, echo: bool = False) -> Engine:
    url = make_url(database_url)
    # One engine serves the request threadpool.
    connect_args = {"check_same_thread": False} if _is_sqlite(url) else {}
    return create_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not _is_sqlite(url),
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_from_url(
            settings.database_url,
            echo=resolve_sqlalchemy_echo(settings),
        )
    return _engine


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def resolve_sqlite_database_path(database_url: str) -> Path | None:
    url = make_url(database_url)
    if not _is_sqlite(url) or url.database in {None, "", ":memory:"}:
        return None

    db_path = Path(str(url.database))
    if not db_path.is_absolute():
        db_path = (Path.cwd() / db_path).resolve()
    return db_path


def ensure_database_parent_dir(database_url: str) -> None:
    db_path = resolve_sqlite_database_path(database_url)
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
