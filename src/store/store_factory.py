# src/store/store_factory.py — v1
"""Factory for document store instantiation."""

from __future__ import annotations

from recipeflow.config.settings import Settings
from recipeflow.store.base_document_store import BaseDocumentStore


def create_document_store(settings: Settings | None = None) -> BaseDocumentStore:
    """Instantiate the configured persistence backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.
    """
    backend = "memory" if settings is None else settings.store_backend

    if backend == "memory":
        from recipeflow.store.memory_store import MemoryDocumentStore
        return MemoryDocumentStore()

    if backend == "json":
        from recipeflow.store.json_store import JsonDocumentStore
        return JsonDocumentStore(root=settings.store_root)

    if backend == "sqlite":
        from recipeflow.store.sqlite_store import SqliteDocumentStore
        return SqliteDocumentStore(db_path=settings.store_root.expanduser() / "recipeflow.db")

    if backend == "redis":
        from recipeflow.store.redis_store import RedisDocumentStore
        if not settings.store_redis_url:
            raise ValueError("STORE_REDIS_URL must be set when STORE_BACKEND=redis")
        return RedisDocumentStore(redis_url=settings.store_redis_url)

    raise ValueError(f"Unsupported store backend: {backend!r}")
