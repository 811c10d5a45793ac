"""Storage commands for the gallery bucket.

- ``storage info``: show the resolved endpoint and bucket configuration
- ``storage ensure-bucket``: create the bucket if absent
- ``storage list``: print every object in the bucket
"""

import sys

import click

from gallery_service.cli.utils import coro, error, info, section, success, warning
from gallery_service.core.settings import get_storage_settings
from gallery_service.features.gallery.templating import filesize
from gallery_service.infra.storage import StorageError, create_object_store, ensure_bucket


@click.group(name="storage")
def storage() -> None:
    """Object storage commands for the configured bucket."""


@storage.command(name="info")
def info_cmd() -> None:
    """Show storage configuration.

    Secrets are never printed.
    """
    try:
        settings = get_storage_settings()
    except Exception as e:
        error(f"Storage settings are invalid: {e}")
        sys.exit(1)

    section("Storage Configuration")
    click.echo(f"Endpoint: {settings.endpoint_url}")
    click.echo(f"Bucket: {settings.bucket}")
    click.echo(f"Region: {settings.region}")
    click.echo(f"Use SSL: {settings.use_ssl}")
    click.echo(f"Verify SSL: {settings.verify_ssl}")
    click.echo(f"Timeout: {settings.timeout}s")
    click.echo(f"Max Retries: {settings.max_retries}")
    click.echo(f"Stream Chunk Size: {filesize(settings.streaming_chunk_size)}")


@storage.command(name="ensure-bucket")
@coro
async def ensure_bucket_cmd() -> None:
    """Create the configured bucket if it does not exist."""
    try:
        store = create_object_store(get_storage_settings())
        await store.startup()
        try:
            created = await ensure_bucket(store)
        finally:
            await store.shutdown()
    except (StorageError, ValueError) as e:
        error(f"Failed to ensure bucket: {e}")
        sys.exit(1)

    if created:
        success(f"Bucket '{store.bucket}' created")
    else:
        info(f"Bucket '{store.bucket}' already exists")


@storage.command(name="list")
@coro
async def list_cmd() -> None:
    """List every object in the configured bucket."""
    try:
        store = create_object_store(get_storage_settings())
        await store.startup()
        try:
            objects = [obj async for obj in store.list_objects()]
        finally:
            await store.shutdown()
    except (StorageError, ValueError) as e:
        error(f"Failed to list objects: {e}")
        sys.exit(1)

    if not objects:
        warning(f"Bucket '{store.bucket}' is empty")
        return

    click.echo(f"\n{'Key':<60} {'Size':>12}")
    click.echo("-" * 73)
    total_size = 0
    for obj in objects:
        display_key = obj.key if len(obj.key) <= 58 else "..." + obj.key[-55:]
        click.echo(f"{display_key:<60} {filesize(obj.size):>12}")
        total_size += obj.size
    click.echo("-" * 73)
    click.echo(f"Total: {len(objects)} objects, {filesize(total_size)}")
