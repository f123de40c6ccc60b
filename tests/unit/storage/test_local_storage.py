# tests/unit/storage/test_local_storage.py — v1
"""Tests for storage/local_storage.py and storage/storage_factory.py."""

from __future__ import annotations

import pytest

from recipeflow.config.settings import Settings
from recipeflow.storage.local_storage import LocalObjectStorage
from recipeflow.storage.storage_factory import create_object_storage


class TestLocalObjectStorage:
    @pytest.mark.asyncio
    async def test_upload_file_uri(self, tmp_path):
        storage = LocalObjectStorage(root=tmp_path)
        url = await storage.upload(b"abc", "exec1/node/0.png", "image/png")
        assert url.startswith("file://")
        assert (tmp_path / "exec1" / "node" / "0.png").read_bytes() == b"abc"

    @pytest.mark.asyncio
    async def test_upload_base_url(self, tmp_path):
        storage = LocalObjectStorage(root=tmp_path, base_url="https://media.local/")
        url = await storage.upload(b"abc", "a/b.png", "image/png")
        assert url == "https://media.local/a/b.png"

    @pytest.mark.asyncio
    async def test_read_and_exists(self, tmp_path):
        storage = LocalObjectStorage(root=tmp_path)
        await storage.upload(b"xyz", "f.bin", "application/octet-stream")
        assert await storage.read("f.bin") == b"xyz"
        assert await storage.exists("f.bin")
        assert not await storage.exists("nope.bin")

    @pytest.mark.asyncio
    async def test_rejects_escaping_path(self, tmp_path):
        storage = LocalObjectStorage(root=tmp_path / "media")
        with pytest.raises(ValueError, match="escapes"):
            await storage.upload(b"x", "../../etc/passwd", "text/plain")


class TestCreateObjectStorage:
    def test_local(self, tmp_path):
        s = Settings(_env_file=None, object_storage_root=tmp_path)
        assert isinstance(create_object_storage(s), LocalObjectStorage)
