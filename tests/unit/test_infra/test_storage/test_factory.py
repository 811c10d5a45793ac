"""Unit tests for the object store factory."""

from gallery_service.core.settings.storage import StorageSettings
from gallery_service.infra.storage.factory import create_object_store
from gallery_service.infra.storage.s3 import S3ObjectStore


def test_factory_uses_given_settings():
    settings = StorageSettings(
        endpoint="minio.internal",
        access_key="key",
        secret_key="secret",
        bucket="photos",
    )

    store = create_object_store(settings)

    assert isinstance(store, S3ObjectStore)
    assert store.bucket == "photos"
    assert not store.is_ready


def test_factory_reads_environment():
    store = create_object_store()

    assert store.bucket == "test-gallery"
    assert store.settings.endpoint_url == "http://localhost:9000"
