"""Server command."""

import click
import uvicorn

from gallery_service.cli.utils import info
from gallery_service.core.settings import get_app_settings, get_logging_settings


@click.command(name="serve")
@click.option("--host", default=None, help="Host to bind (default: APP_HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT/PORT or 3000)")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the gallery web server.

    The bucket is checked (and created if absent) before the socket is
    bound; if that fails the process exits without serving.
    """
    settings = get_app_settings()
    log_settings = get_logging_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Serving {settings.title} at http://{host}:{port}")

    uvicorn.run(
        "gallery_service.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
