from __future__ import annotations

from sqlmodel import Session

from tasknest.core.config import get_settings
from tasknest.core.logging import get_logger
from tasknest.db.engine import create_engine_from_url
from tasknest.db.migrations import upgrade_to_head
from tasknest.db.seed import seed_initial_data

logger = get_logger("tasknest.db.bootstrap")


def initialize_database(database_url: str | None = None, *, seed: bool = True) -> None:
    """Bring the schema to head, then optionally load the demo user and its folders."""
    target_url = database_url or get_settings().database_url
    upgrade_to_head(target_url)
    logger.info("db.migrated", seed=seed)
    if not seed:
        return

    engine = create_engine_from_url(target_url)
    try:
        with Session(engine) as session:
            seed_initial_data(session)
    finally:
        engine.dispose()
