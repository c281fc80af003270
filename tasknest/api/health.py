from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tasknest.api.schemas import CheckState, HealthzResponse, ReadinessChecks, ReadyzResponse
from tasknest.core.config import get_settings
from tasknest.core.logging import get_logger
from tasknest.db.engine import get_engine

router = APIRouter(tags=["health"])
logger = get_logger("tasknest.api.health")


@router.get("/healthz", response_model=HealthzResponse)
def healthz() -> HealthzResponse:
    settings = get_settings()
    return HealthzResponse(status="ok", service=settings.app_name, env=settings.app_env)


def _check_database() -> CheckState:
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness.database_unavailable", error=str(exc))
        return "unavailable"
    return "ok"


@router.get("/readyz", response_model=ReadyzResponse)
def readyz(response: Response) -> ReadyzResponse:
    _ = get_settings()
    checks = ReadinessChecks(configuration="ok", database=_check_database())
    if checks.database != "ok":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyzResponse(status="not_ready", checks=checks)
    return ReadyzResponse(status="ready", checks=checks)
