from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from ..db.document_store import DocumentNotFoundError, DocumentStore
from ..models.ledger_row import CanonicalLedgerRow
from ..models.processed_document import ProcessedDocument, RowCollection

"""Ledger-name persistence protocol.

A changeset names rows by their best identifier (persisted id, else serial
number) plus their position as a tie-breaker. Committing it:

1. reads the authoritative document from the store,
2. resolves every entry to a row (any miss rejects the whole changeset),
3. sets only the ledger name of the resolved rows,
4. replaces the document in the store and the cache entry wholesale,
5. returns the full updated document.

Callers replace their local copy with the returned document; nothing is ever
patched locally.
"""

__all__ = [
    "ChangesetEntry",
    "CommitInProgressError",
    "DocumentCache",
    "LedgerNamePersistenceProtocol",
    "StaleChangesetError",
    "apply_ledger_names",
    "normalize_ledger_name",
]

logger = logging.getLogger(__name__)


class StaleChangesetError(Exception):
    """Raised when a changeset entry no longer resolves to a stored row."""


class CommitInProgressError(Exception):
    """Raised when a commit is issued while another is outstanding for the same document."""


@dataclass(frozen=True)
class ChangesetEntry:
    """One ledger-name change addressed to a row."""
    row_identifier: str | int | None  # Persisted id, else serial number
    row_index: int  # Position at buffer initialisation (fallback / tie-breaker)
    ledger_name: str | None  # Trimmed name; None means "cleared"


def normalize_ledger_name(value: object) -> str | None:
    """Trim a ledger name; empty or whitespace-only input becomes None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def _as_int(value: str | int) -> int | None:
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _resolve_index(rows: tuple[CanonicalLedgerRow, ...], entry: ChangesetEntry) -> int:
    identifier = entry.row_identifier
    if identifier is None or identifier == "":
        if 0 <= entry.row_index < len(rows):
            return entry.row_index
        raise StaleChangesetError(f"row index {entry.row_index} out of range ({len(rows)} rows)")

    candidates = [i for i, r in enumerate(rows) if r.row_id not in (None, "") and str(r.row_id) == str(identifier)]
    if not candidates:
        sl_no = _as_int(identifier)
        if sl_no is not None:
            candidates = [i for i, r in enumerate(rows) if r.sl_no == sl_no]
    if not candidates:
        raise StaleChangesetError(f"row {identifier!r} cannot be resolved")
    if entry.row_index in candidates:
        return entry.row_index
    return candidates[0]


def apply_ledger_names(
    document: ProcessedDocument,
    changeset: Iterable[ChangesetEntry],
    collection: RowCollection = RowCollection.PROCESSED,
) -> ProcessedDocument:
    """Return a copy of ``document`` with the changeset's ledger names applied.

    Only the ``ledger_name`` of addressed rows in ``collection`` changes; every
    other field and every other collection is carried over as-is.

    Raises:
        StaleChangesetError: If any entry cannot be resolved (nothing applied)
    """
    rows = document.rows(collection)
    updates: dict[int, str | None] = {}
    for entry in changeset:
        updates[_resolve_index(rows, entry)] = normalize_ledger_name(entry.ledger_name)

    next_rows = tuple(
        replace(row, ledger_name=updates[idx]) if idx in updates else row
        for idx, row in enumerate(rows)
    )
    return document.with_rows(collection, next_rows)


class DocumentCache:
    """Advisory cache of processed documents keyed by import id.

    A miss always loads fresh; entries are replaced wholesale after a commit.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ProcessedDocument] = {}

    def get(self, import_id: str) -> ProcessedDocument | None:
        return self._entries.get(import_id)

    def get_or_load(
        self, import_id: str, loader: Callable[[str], ProcessedDocument]
    ) -> ProcessedDocument:
        cached = self._entries.get(import_id)
        if cached is not None:
            return cached
        document = loader(import_id)
        self._entries[import_id] = document
        return document

    def put(self, import_id: str, document: ProcessedDocument) -> None:
        self._entries[import_id] = document

    def discard(self, import_id: str) -> None:
        self._entries.pop(import_id, None)

    def __contains__(self, import_id: object) -> bool:
        return import_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class LedgerNamePersistenceProtocol:
    """Commits ledger-name changesets against a document store."""

    def __init__(self, store: DocumentStore, cache: DocumentCache | None = None) -> None:
        self.store = store
        self.cache = cache if cache is not None else DocumentCache()
        self._in_flight: set[str] = set()

    def fetch(self, import_id: str) -> ProcessedDocument:
        """Current document for ``import_id`` (cached, or loaded on a miss)."""
        return self.cache.get_or_load(import_id, self.store.get)

    def commit(
        self,
        import_id: str,
        changeset: Iterable[ChangesetEntry],
        collection: RowCollection = RowCollection.PROCESSED,
    ) -> ProcessedDocument:
        """Apply ``changeset`` to the stored document and return the new document.

        An empty changeset is a no-op that returns the current document.

        Raises:
            CommitInProgressError: Another commit for ``import_id`` is outstanding
            DocumentNotFoundError: No document is stored for ``import_id``
            StaleChangesetError: An entry no longer resolves; nothing is written
        """
        entries = list(changeset)
        if not entries:
            logger.debug("import=%s empty changeset, nothing to commit", import_id)
            return self.fetch(import_id)

        if import_id in self._in_flight:
            raise CommitInProgressError(f"commit already in progress for import {import_id}")

        self._in_flight.add(import_id)
        try:
            current = self.store.get(import_id)
            updated = apply_ledger_names(current, entries, collection)
            stored = self.store.replace(import_id, updated)
        except (DocumentNotFoundError, StaleChangesetError) as e:
            logger.warning("import=%s ledger name commit rejected: %s", import_id, e)
            raise
        finally:
            self._in_flight.discard(import_id)

        self.cache.put(import_id, stored)
        logger.info(
            "import=%s ledger names committed rows=%d collection=%s",
            import_id,
            len(entries),
            collection.value,
        )
        return stored
