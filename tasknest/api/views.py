from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import HTMLResponse

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(
    request: Request,
    view: str,
    context: Mapping[str, Any] | None = None,
    *,
    status_code: int = 200,
) -> HTMLResponse:
    """Render a view by name, e.g. ``tasks/index`` -> ``templates/tasks/index.html``."""
    return templates.TemplateResponse(
        request,
        f"{view}.html",
        dict(context or {}),
        status_code=status_code,
    )
