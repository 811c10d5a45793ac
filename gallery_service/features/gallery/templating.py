"""Jinja2 page rendering for the gallery.

Provides the shared ``Jinja2Templates`` instance with:
- Autoescaping for HTML templates
- Template inheritance from ``base.html``
- A ``filesize`` filter for human-readable byte counts
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.responses import Response

TEMPLATE_DIR = Path(__file__).parent / "templates"

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def filesize(num_bytes: int | None) -> str:
    """Format a byte count for display, e.g. ``1536`` -> ``"1.5 KB"``."""
    if not num_bytes:
        return "0 B"
    size = float(num_bytes)
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_SIZE_UNITS[-1]}"


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["filesize"] = filesize
    return env


templates = Jinja2Templates(env=_build_environment())


def render_error(
    request: Request,
    message: str,
    status_code: int,
    **context: Any,
) -> Response:
    """Render ``error.html`` with ``message`` and the given status."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": message, "status_code": status_code, **context},
        status_code=status_code,
    )
