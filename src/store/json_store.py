# src/store/json_store.py — v1
"""JSON file-based document store (default STORE_BACKEND=json).

One file per document: ``STORE_ROOT/<collection>/<id>.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from recipeflow.store.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class JsonDocumentStore(BaseDocumentStore):
    """File-based document store using JSON files."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        path = self._doc_path(collection, doc_id)
        if not path.exists():
            return None
        return self._read(path)

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        path = self._doc_path(collection, doc_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so pollers never read a half-written file
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(document, indent=2, default=str), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, collection: str, doc_id: str) -> bool:
        path = self._doc_path(collection, doc_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    async def list(self, collection: str) -> list[dict[str, Any]]:
        directory = self._root / _safe(collection)
        if not directory.is_dir():
            return []
        documents: list[dict[str, Any]] = []
        for path in sorted(directory.glob("*.json")):
            document = self._read(path)
            if document is not None:
                documents.append(document)
        return documents

    @staticmethod
    def _read(path: Path) -> dict[str, Any] | None:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read document %s: %s", path, e)
            return None

    def _doc_path(self, collection: str, doc_id: str) -> Path:
        return self._root / _safe(collection) / f"{_safe(doc_id)}.json"


def _safe(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_")
