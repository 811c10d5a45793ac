"""Main entry point for gallery-service.

- ``python -m gallery_service.main --server``: run the web server
- ``python -m gallery_service.main <command>``: run the CLI
"""

from __future__ import annotations

import sys
from typing import NoReturn


def run_server() -> NoReturn:
    """Run the gallery with uvicorn using settings from the environment."""
    import uvicorn

    from gallery_service.core.settings import get_app_settings, get_logging_settings

    settings = get_app_settings()
    log_settings = get_logging_settings()

    uvicorn.run(
        "gallery_service.app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
    sys.exit(0)


def run_cli() -> NoReturn:
    """Run the CLI interface."""
    from gallery_service.cli.main import main as cli_main

    cli_main()
    sys.exit(0)


def main() -> NoReturn:
    """Route to the server when ``--server`` is given, otherwise to the CLI."""
    if "--server" in sys.argv:
        sys.argv.remove("--server")
        run_server()
    else:
        run_cli()


if __name__ == "__main__":
    main()
