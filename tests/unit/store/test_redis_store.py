# tests/unit/store/test_redis_store.py — v1
"""Tests for store/redis_store.py — mocked Redis client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest


def _fake_redis() -> MagicMock:
    storage: dict[str, str] = {}
    indexes: dict[str, set[str]] = {}

    mock_redis = MagicMock()
    mock_redis.get = lambda k: storage.get(k)
    mock_redis.set = lambda k, v: storage.__setitem__(k, v)
    mock_redis.delete = lambda k: 1 if storage.pop(k, None) is not None else 0
    mock_redis.sadd = lambda k, v: indexes.setdefault(k, set()).add(v)
    mock_redis.srem = lambda k, v: indexes.setdefault(k, set()).discard(v)
    mock_redis.smembers = lambda k: set(indexes.get(k, set()))
    return mock_redis


def _store():
    from recipeflow.store.redis_store import RedisDocumentStore

    with patch("recipeflow.store.redis_store.RedisDocumentStore.__init__", return_value=None):
        store = RedisDocumentStore.__new__(RedisDocumentStore)
    store._client = _fake_redis()
    return store


class TestRedisDocumentStore:
    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        import sys
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            from recipeflow.store.redis_store import RedisDocumentStore
            with pytest.raises(ImportError, match="redis"):
                RedisDocumentStore(redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        store = _store()
        await store.put("recipe_executions", "e1", {"executionId": "e1", "status": "running"})
        assert (await store.get("recipe_executions", "e1"))["status"] == "running"
        assert await store.delete("recipe_executions", "e1") is True
        assert await store.get("recipe_executions", "e1") is None

    @pytest.mark.asyncio
    async def test_list_and_query(self):
        store = _store()
        await store.put("recipes", "a", {"id": "a", "stageType": "persona"})
        await store.put("recipes", "b", {"id": "b", "stageType": "narrative"})
        assert [d["id"] for d in await store.list("recipes")] == ["a", "b"]
        result = await store.query("recipes", {"stageType": "narrative"})
        assert [d["id"] for d in result] == ["b"]
