# src/storage/storage_factory.py — v1
"""Factory: instantiate object storage from configuration."""

from __future__ import annotations

from recipeflow.config.settings import Settings
from recipeflow.storage.base_object_storage import BaseObjectStorage
from recipeflow.storage.local_storage import LocalObjectStorage


def create_object_storage(settings: Settings) -> BaseObjectStorage:
    """Create the object storage backend selected by OBJECT_STORAGE.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.object_storage == "local":
        return LocalObjectStorage(
            root=settings.object_storage_root,
            base_url=settings.object_storage_base_url,
        )

    if settings.object_storage == "s3":
        from recipeflow.storage.s3_storage import S3ObjectStorage
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET must be set when OBJECT_STORAGE=s3")
        return S3ObjectStorage(
            bucket=settings.s3_bucket,
            prefix=settings.s3_prefix,
            region=settings.s3_region or None,
            endpoint_url=settings.s3_endpoint_url or None,
            public_base_url=settings.object_storage_base_url,
        )

    raise ValueError(f"Unsupported object storage: {settings.object_storage!r}")
