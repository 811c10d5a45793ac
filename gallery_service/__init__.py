"""Bucket gallery: browse, upload, download, preview and delete objects in one S3 bucket."""

__version__ = "1.0.0"
