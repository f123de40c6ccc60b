# src/storage/s3_storage.py — v1
"""S3-compatible object storage (OBJECT_STORAGE=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install recipeflow[s3].
"""

from __future__ import annotations

import logging

from recipeflow.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)


class S3ObjectStorage(BaseObjectStorage):
    """Upload media to S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "recipeflow/",
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str = "",
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "recipeflow/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            public_base_url: CDN or public URL prefix returned instead of
                the bucket URL.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 storage: pip install recipeflow[s3]"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        self._region = region
        self._endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self._public_base_url = public_base_url.rstrip("/")

    def _full_key(self, path: str) -> str:
        """Build the full S3 key from a relative path."""
        return f"{self._prefix}{path.lstrip('/')}"

    def url_for(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        if self._endpoint_url:
            return f"{self._endpoint_url}/{self._bucket}/{key}"
        if self._region:
            return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
        return f"https://{self._bucket}.s3.amazonaws.com/{key}"

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        key = self._full_key(path)
        self._s3.put_object(
            Bucket=self._bucket, Key=key, Body=data, ContentType=content_type
        )
        logger.debug("S3 upload: s3://%s/%s (%d bytes)", self._bucket, key, len(data))
        return self.url_for(key)

    async def read(self, path: str) -> bytes:
        response = self._s3.get_object(Bucket=self._bucket, Key=self._full_key(path))
        return response["Body"].read()

    async def exists(self, path: str) -> bool:
        """Check if an S3 object exists."""
        try:
            self._s3.head_object(Bucket=self._bucket, Key=self._full_key(path))
            return True
        except self._s3.exceptions.ClientError:
            return False
