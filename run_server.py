"""
Development uvicorn runner.

Host, port and reload behaviour follow the application settings, so the
same `.env` drives both the app and the server.

Usage: python run_server.py
"""

from __future__ import annotations

from uvicorn import Config, Server

from tasknest.core.config import get_settings


def main() -> None:
    settings = get_settings()
    config = Config(
        app="tasknest.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.app_env == "development",
        reload_dirs=["tasknest"],
        log_config=None,
    )
    Server(config=config).run()


if __name__ == "__main__":
    main()
