# src/storage/local_storage.py — v1
"""Local filesystem object storage (default OBJECT_STORAGE=local)."""

from __future__ import annotations

import logging
from pathlib import Path

from recipeflow.storage.base_object_storage import BaseObjectStorage

logger = logging.getLogger(__name__)


class LocalObjectStorage(BaseObjectStorage):
    """Write media under a root directory.

    URLs are ``<base_url>/<path>`` when a public base URL is configured,
    otherwise ``file://`` URIs.
    """

    def __init__(self, root: Path | str, base_url: str = "") -> None:
        self._root = Path(root).expanduser()
        self._base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        resolved = (self._root / path.lstrip("/")).resolve()
        if not resolved.is_relative_to(self._root.resolve()):
            raise ValueError(f"Object path escapes storage root: {path!r}")
        return resolved

    async def upload(self, data: bytes, path: str, content_type: str) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Stored %d bytes (%s) at %s", len(data), content_type, target)
        if self._base_url:
            return f"{self._base_url}/{path.lstrip('/')}"
        return target.as_uri()

    async def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()
