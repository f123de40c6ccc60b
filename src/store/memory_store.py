# src/store/memory_store.py — v1
"""In-process document store (STORE_BACKEND=memory).

Not persistent. Documents are deep-copied in and out so callers never
share mutable state with the store.
"""

from __future__ import annotations

import copy
from typing import Any

from recipeflow.store.base_document_store import BaseDocumentStore


class MemoryDocumentStore(BaseDocumentStore):
    """Dict-backed store for tests and single-process runs."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        document = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(document)

    async def delete(self, collection: str, doc_id: str) -> bool:
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    async def list(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._collections.get(collection, {}).values()]
