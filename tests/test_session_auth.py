from __future__ import annotations

import json
from base64 import b64encode

import pytest
from itsdangerous import TimestampSigner

from tasknest.core.auth import _coerce_user_id
from tasknest.core.config import get_settings
from tests.shared import ApiTestContext


def _session_cookie(payload: dict[str, object], *, secret: str | None = None) -> str:
    signer = TimestampSigner(secret or get_settings().session_secret_key)
    encoded = b64encode(json.dumps(payload).encode("utf-8"))
    return signer.sign(encoded).decode("utf-8")


def _use_real_session(context: ApiTestContext) -> None:
    context.app.dependency_overrides.clear()


def test_request_without_session_is_unauthorized(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)

    response = api_context.client.get(f"/folders/{api_context.folder_id}/tasks")

    assert response.status_code == 401
    assert response.json() == {
        "error": {
            "code": "UNAUTHORIZED",
            "message": "Authentication required.",
            "issues": [],
        }
    }


def test_signed_session_cookie_authenticates_user(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)
    cookie_name = get_settings().session_cookie_name
    api_context.client.cookies.set(
        cookie_name,
        _session_cookie({"user_id": api_context.user_id}),
    )

    response = api_context.client.get(f"/folders/{api_context.folder_id}/tasks")

    assert response.status_code == 200
    assert "Draft report" in response.text


def test_session_cookie_scopes_folders_to_its_user(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)
    api_context.client.cookies.set(
        get_settings().session_cookie_name,
        _session_cookie({"user_id": api_context.other_user_id}),
    )

    own = api_context.client.get(f"/folders/{api_context.other_folder_id}/tasks")
    foreign = api_context.client.get(f"/folders/{api_context.folder_id}/tasks")

    assert own.status_code == 200
    assert foreign.status_code == 404
    assert foreign.json()["error"]["code"] == "FOLDER_NOT_FOUND"


def test_cookie_signed_with_other_secret_is_ignored(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)
    api_context.client.cookies.set(
        get_settings().session_cookie_name,
        _session_cookie({"user_id": api_context.user_id}, secret="not-the-app-secret"),
    )

    response = api_context.client.get(f"/folders/{api_context.folder_id}/tasks")

    assert response.status_code == 401


def test_session_for_deleted_user_is_unauthorized(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)
    api_context.client.cookies.set(
        get_settings().session_cookie_name,
        _session_cookie({"user_id": 9999}),
    )

    response = api_context.client.get(f"/folders/{api_context.folder_id}/tasks")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_unauthorized_html_request_renders_error_page(api_context: ApiTestContext) -> None:
    _use_real_session(api_context)

    response = api_context.client.get(
        f"/folders/{api_context.folder_id}/tasks",
        headers={"Accept": "text/html"},
    )

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("text/html")
    assert "Authentication required." in response.text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (7, 7),
        (" 12 ", 12),
        ("0", None),
        (-3, None),
        (True, None),
        ("abc", None),
        ("²", None),
        (None, None),
    ],
)
def test_coerce_user_id(raw: object, expected: int | None) -> None:
    assert _coerce_user_id(raw) == expected
