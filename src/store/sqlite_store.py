# src/store/sqlite_store.py — v1
"""SQLite-based document store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3. Equality filters on top-level scalar fields are
pushed down with json_extract; everything else falls back to a scan.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from recipeflow.store.base_document_store import BaseDocumentStore, matches

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
"""


class SqliteDocumentStore(BaseDocumentStore):
    """SQLite-backed document store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser() if str(db_path) != ":memory:" else None
        if self._db_path is not None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path or ":memory:"))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        cursor = self._conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = cursor.fetchone()
        return self._decode(row[0], doc_id) if row else None

    async def put(self, collection: str, doc_id: str, document: dict[str, Any]) -> None:
        """Insert or replace (upsert)."""
        self._conn.execute(
            """INSERT OR REPLACE INTO documents (collection, id, data, updated_at)
               VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
            (collection, doc_id, json.dumps(document, default=str)),
        )
        self._conn.commit()

    async def delete(self, collection: str, doc_id: str) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    async def list(self, collection: str) -> list[dict[str, Any]]:
        cursor = self._conn.execute(
            "SELECT id, data FROM documents WHERE collection = ? ORDER BY id",
            (collection,),
        )
        return self._decode_rows(cursor.fetchall())

    async def query(
        self, collection: str, filters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        filters = filters or {}
        sql = "SELECT id, data FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        for path, expected in filters.items():
            if "." not in path and isinstance(expected, (str, int, float)) and not isinstance(expected, bool):
                sql += " AND json_extract(data, ?) = ?"
                params.extend([f"$.{path}", expected])
        cursor = self._conn.execute(sql + " ORDER BY id", params)
        documents = self._decode_rows(cursor.fetchall())
        return [doc for doc in documents if matches(doc, filters)]

    def _decode_rows(self, rows: list[tuple[str, str]]) -> list[dict[str, Any]]:
        documents: list[dict[str, Any]] = []
        for doc_id, data in rows:
            document = self._decode(data, doc_id)
            if document is not None:
                documents.append(document)
        return documents

    @staticmethod
    def _decode(data: str, doc_id: str) -> dict[str, Any] | None:
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Failed to deserialize document %s: %s", doc_id, e)
            return None

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
