# src/store/base_document_store.py — v1
"""Abstract document store interface.

Documents are JSON-compatible dicts addressed by (collection, id). Used
for the ``recipes`` and ``recipe_executions`` collections.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

_MISSING = object()


def get_path(document: dict[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path (``metadata.isActive``) from a nested dict."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return default
    return current


def matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Return True if every filter path equals the expected value.

    A list-valued field matches when it contains the expected value.
    """
    for path, expected in filters.items():
        value = get_path(document, path, _MISSING)
        if value is _MISSING:
            return False
        if isinstance(value, list) and not isinstance(expected, list):
            if expected not in value:
                return False
        elif value != expected:
            return False
    return True


class BaseDocumentStore(ABC):
    """Unified interface for persistence backends."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by id."""

    @abstractmethod
    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Insert or replace a document."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Remove a document. Returns False if it did not exist."""

    @abstractmethod
    async def list(self, collection: str) -> list[dict[str, Any]]:
        """List every document of a collection."""

    async def query(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Equality query on dotted paths (full scan by default)."""
        documents = await self.list(collection)
        if not filters:
            return documents
        return [doc for doc in documents if matches(doc, filters)]

    def close(self) -> None:
        """Release backend resources."""
