# src/store/redis_store.py — v1
"""Redis-based document store (STORE_BACKEND=redis).

Requires the 'redis' package: pip install recipeflow[redis].
Each collection keeps a set of its ids for list/query scans.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from recipeflow.store.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "recipeflow:doc:"
_INDEX_PREFIX = "recipeflow:index:"


class RedisDocumentStore(BaseDocumentStore):
    """Redis-backed document store for multi-instance deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install recipeflow[redis]"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._client.get(_doc_key(collection, doc_id))
        if data is None:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Failed to deserialize document %s/%s: %s", collection, doc_id, e)
            return None

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        self._client.set(_doc_key(collection, doc_id), json.dumps(document, default=str))
        self._client.sadd(f"{_INDEX_PREFIX}{collection}", doc_id)

    async def delete(self, collection: str, doc_id: str) -> bool:
        removed = self._client.delete(_doc_key(collection, doc_id))
        self._client.srem(f"{_INDEX_PREFIX}{collection}", doc_id)
        return bool(removed)

    async def list(self, collection: str) -> list[dict[str, Any]]:
        ids = sorted(self._client.smembers(f"{_INDEX_PREFIX}{collection}"))
        documents: list[dict[str, Any]] = []
        for doc_id in ids:
            document = await self.get(collection, doc_id)
            if document is not None:
                documents.append(document)
        return documents

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()


def _doc_key(collection: str, doc_id: str) -> str:
    return f"{_KEY_PREFIX}{collection}:{doc_id}"
