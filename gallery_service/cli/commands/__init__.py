"""CLI command groups."""

from gallery_service.cli.commands import server, storage

__all__ = ["server", "storage"]
