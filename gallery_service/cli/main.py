"""Main CLI entry point for gallery-service."""

import click

from gallery_service import __version__
from gallery_service.cli.commands import server, storage
from gallery_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="gallery-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Gallery Service CLI.

    \b
    Commands:
      serve      Run the web gallery
      storage    Inspect and bootstrap the configured bucket

    \b
    Quick Start:
      gallery-service storage info            # Show resolved storage settings
      gallery-service storage ensure-bucket   # Create the bucket if absent
      gallery-service serve --port 3000       # Run the server
    """
    ctx.ensure_object(dict)


cli.add_command(server.serve)
cli.add_command(storage.storage)


def main() -> None:
    """Main entry point for the CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
