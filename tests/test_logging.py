from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tasknest.core.config import Settings, get_settings, resolve_sqlalchemy_echo
from tasknest.core.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    get_settings.cache_clear()
    configure_logging(Settings(app_env="test", testing=True, log_format="json"))


@pytest.mark.parametrize(
    ("settings", "expected"),
    [
        (Settings(app_env="test", debug=True, testing=True), False),
        (Settings(app_env="production", debug=False, testing=False), False),
        (Settings(app_env="development", debug=True, testing=False), True),
        (Settings(app_env="production", debug=False, sqlalchemy_echo=True), True),
        (Settings(app_env="development", debug=True, sqlalchemy_echo=False), False),
    ],
)
def test_resolve_sqlalchemy_echo(settings: Settings, expected: bool) -> None:
    assert resolve_sqlalchemy_echo(settings) is expected


def test_sqlalchemy_statements_are_silenced_without_echo() -> None:
    configure_logging(Settings(app_env="test", debug=True, testing=True, log_level="INFO"))

    sqlalchemy_logger = logging.getLogger("sqlalchemy")
    assert sqlalchemy_logger.level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").getEffectiveLevel() == logging.WARNING
    assert logging.getLogger("uvicorn").level == logging.INFO


def test_sqlalchemy_statements_follow_explicit_echo() -> None:
    configure_logging(
        Settings(app_env="production", debug=False, sqlalchemy_echo=True, log_level="INFO")
    )

    assert logging.getLogger("sqlalchemy").level == logging.INFO


def test_sqlalchemy_respects_stricter_log_level() -> None:
    configure_logging(Settings(app_env="development", debug=True, log_level="ERROR"))

    assert logging.getLogger("sqlalchemy").level == logging.ERROR
