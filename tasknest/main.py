from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from tasknest.api.errors import register_exception_handlers
from tasknest.api.health import router as health_router
from tasknest.api.tasks import router as tasks_router
from tasknest.core.config import get_settings
from tasknest.core.logging import TraceContextMiddleware, configure_logging, get_logger
from tasknest.db.bootstrap import initialize_database
from tasknest.db.engine import dispose_engine, get_engine

logger = get_logger("tasknest.main")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.db_auto_init:
            initialize_database(
                database_url=settings.database_url,
                seed=settings.db_auto_seed,
            )
        get_engine()
        logger.info("app.started", env=settings.app_env)
        try:
            yield
        finally:
            dispose_engine()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age_s,
        same_site="lax",
        https_only=settings.session_https_only,
    )
    app.add_middleware(TraceContextMiddleware)
    app.include_router(health_router)
    app.include_router(tasks_router)
    return app


app = create_app()
