from typing import Literal

from pydantic import BaseModel

CheckState = Literal["ok", "unavailable"]


class HealthzResponse(BaseModel):
    status: Literal["ok"]
    service: str
    env: str


class ReadinessChecks(BaseModel):
    configuration: CheckState
    database: CheckState


class ReadyzResponse(BaseModel):
    status: Literal["ready", "not_ready"]
    checks: ReadinessChecks
