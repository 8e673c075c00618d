from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from psycopg2.extras import Json

from ..models.processed_document import ProcessedDocument

"""Processed document stores.

The core only needs fetch-by-id and whole-document replace. Two stores are
provided:

- JsonFileDocumentStore: every document in one JSON file, rewritten through a
  temp file + rename so a failed write never leaves a half-written store.
- PostgresDocumentStore: one JSONB row per document, each replace in its own
  explicit transaction (BEGIN/COMMIT, ROLLBACK on failure).
"""

__all__ = [
    "DocumentNotFoundError",
    "DocumentStore",
    "JsonFileDocumentStore",
    "PostgresDocumentStore",
    "StoreError",
]

logger = logging.getLogger(__name__)

COLLECTION_KEY = "processedFiles"


class StoreError(Exception):
    """Raised when a store cannot be read or written."""


class DocumentNotFoundError(StoreError):
    """Raised when no processed document exists for an import id."""


class DocumentStore:
    """Contract shared by every processed document store."""

    def get(self, import_id: str) -> ProcessedDocument:  # pragma: no cover (interface)
        raise NotImplementedError

    def replace(self, import_id: str, document: ProcessedDocument) -> ProcessedDocument:  # pragma: no cover
        raise NotImplementedError

    def list_ids(self) -> list[str]:  # pragma: no cover (interface)
        raise NotImplementedError


def _stamp(import_id: str, document: ProcessedDocument) -> ProcessedDocument:
    return replace(document, import_id=import_id, updated_at=datetime.now(UTC))


class JsonFileDocumentStore(DocumentStore):
    """Single-file JSON store: ``{"processedFiles": [document, ...]}``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_entries(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"cannot read store {self.path}: {e}") from e
        entries = data.get(COLLECTION_KEY, [])
        if not isinstance(entries, list):
            raise StoreError(f"store {self.path} has no '{COLLECTION_KEY}' list")
        return entries

    def _write_entries(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({COLLECTION_KEY: entries}, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"cannot write store {self.path}: {e}") from e

    def get(self, import_id: str) -> ProcessedDocument:
        for entry in self._read_entries():
            if entry.get("_id") == import_id:
                return ProcessedDocument.from_dict(entry)
        raise DocumentNotFoundError(f"processed document not found: {import_id}")

    def replace(self, import_id: str, document: ProcessedDocument) -> ProcessedDocument:
        stored = _stamp(import_id, document)
        entries = self._read_entries()
        payload = stored.to_dict()
        for idx, entry in enumerate(entries):
            if entry.get("_id") == import_id:
                entries[idx] = payload
                break
        else:
            entries.append(payload)
        self._write_entries(entries)
        logger.debug("json store replaced import=%s path=%s", import_id, self.path)
        return stored

    def list_ids(self) -> list[str]:
        return [str(e["_id"]) for e in self._read_entries() if "_id" in e]


class PostgresDocumentStore(DocumentStore):
    """PostgreSQL store over a psycopg2 cursor (autocommit off)."""

    def __init__(self, cursor: Any, table: str = "processed_documents") -> None:
        if not table.replace("_", "").isalnum():
            raise StoreError(f"invalid table name: {table!r}")
        self.cursor = cursor
        self.table = table

    def ensure_schema(self) -> None:
        try:
            self.cursor.execute("BEGIN")
            self.cursor.execute(
                f"CREATE TABLE IF NOT EXISTS {self.table} ("
                "import_id TEXT PRIMARY KEY, "
                "company TEXT NOT NULL, "
                "payload JSONB NOT NULL, "
                "processed_at TIMESTAMPTZ, "
                "updated_at TIMESTAMPTZ)"
            )
            self.cursor.execute("COMMIT")
        except Exception as e:
            self._rollback()
            raise StoreError(f"cannot create table {self.table}: {e}") from e

    def _rollback(self) -> None:
        try:
            self.cursor.execute("ROLLBACK")
        except Exception:  # pragma: no cover
            logger.debug("rollback failed table=%s", self.table, exc_info=True)

    def get(self, import_id: str) -> ProcessedDocument:
        try:
            self.cursor.execute(
                f"SELECT payload FROM {self.table} WHERE import_id = %s",
                (import_id,),
            )
            row = self.cursor.fetchone()
        except Exception as e:
            raise StoreError(f"cannot read import {import_id}: {e}") from e
        if row is None:
            raise DocumentNotFoundError(f"processed document not found: {import_id}")
        payload = row[0]
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        return ProcessedDocument.from_dict(payload)

    def replace(self, import_id: str, document: ProcessedDocument) -> ProcessedDocument:
        stored = _stamp(import_id, document)
        try:
            self.cursor.execute("BEGIN")
            self.cursor.execute(
                f"INSERT INTO {self.table} (import_id, company, payload, processed_at, updated_at) "
                "VALUES (%s, %s, %s, %s, %s) "
                "ON CONFLICT (import_id) DO UPDATE SET "
                "company = EXCLUDED.company, payload = EXCLUDED.payload, "
                "processed_at = EXCLUDED.processed_at, updated_at = EXCLUDED.updated_at",
                (
                    import_id,
                    stored.company,
                    Json(stored.to_dict()),
                    stored.processed_at,
                    stored.updated_at,
                ),
            )
            self.cursor.execute("COMMIT")
        except Exception as e:
            self._rollback()
            raise StoreError(f"cannot store import {import_id}: {e}") from e
        return stored

    def list_ids(self) -> list[str]:
        try:
            self.cursor.execute(f"SELECT import_id FROM {self.table} ORDER BY import_id")
            return [r[0] for r in self.cursor.fetchall()]
        except Exception as e:
            raise StoreError(f"cannot list imports: {e}") from e
