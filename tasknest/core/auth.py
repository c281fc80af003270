from __future__ import annotations

from typing import Annotated

from fastapi import Depends, status
from sqlmodel import Session
from starlette.requests import Request

from tasknest.api.errors import ApiException
from tasknest.db.models import User
from tasknest.db.repositories import UserRepository
from tasknest.db.session import get_session

# Written by the login flow, which lives outside this service and shares the session secret.
SESSION_USER_KEY = "user_id"


def _unauthorized() -> ApiException:
    return ApiException(
        status.HTTP_401_UNAUTHORIZED,
        "UNAUTHORIZED",
        "Authentication required.",
    )


def _coerce_user_id(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdecimal():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def get_authenticated_user_id(request: Request) -> int:
    user_id = _coerce_user_id(request.session.get(SESSION_USER_KEY))
    if user_id is None:
        raise _unauthorized()
    return user_id


def get_current_user(
    user_id: Annotated[int, Depends(get_authenticated_user_id)],
    session: Annotated[Session, Depends(get_session)],
) -> User:
    user = UserRepository(session).get(user_id)
    if user is None:
        # Session outlived the account.
        raise _unauthorized()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
