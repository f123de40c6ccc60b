# tests/unit/store/test_store_factory.py — v1
"""Tests for store/store_factory.py."""

from __future__ import annotations

from recipeflow.config.settings import Settings
from recipeflow.store.json_store import JsonDocumentStore
from recipeflow.store.memory_store import MemoryDocumentStore
from recipeflow.store.sqlite_store import SqliteDocumentStore
from recipeflow.store.store_factory import create_document_store


class TestCreateDocumentStore:
    def test_default_memory(self):
        assert isinstance(create_document_store(), MemoryDocumentStore)

    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, store_backend="json", store_root=tmp_path)
        assert isinstance(create_document_store(s), JsonDocumentStore)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, store_backend="sqlite", store_root=tmp_path)
        store = create_document_store(s)
        assert isinstance(store, SqliteDocumentStore)
        assert (tmp_path / "recipeflow.db").exists()
        store.close()
