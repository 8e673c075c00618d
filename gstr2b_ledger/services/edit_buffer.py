from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ..models.ledger_row import CanonicalLedgerRow
from ..models.processed_document import ProcessedDocument, RowCollection
from .persistence import (
    ChangesetEntry,
    CommitInProgressError,
    LedgerNamePersistenceProtocol,
    normalize_ledger_name,
)
from .row_key import row_identifier, row_keys

"""Ledger-name edit buffer.

Tracks per-row ledger-name edits against the last saved values without
touching the store until ``commit``. State:

- inputs: row key -> current text, one entry per row (see ``row_keys``)
- saved snapshot: row key -> text as last loaded/saved
- dirty: keys whose input differs from the snapshot

Lifecycle: IDLE -> EDITING (first edit of any row) -> SAVING -> IDLE. An
edit reverted to the saved value clears the row from ``dirty`` but leaves the
buffer in EDITING.
``initialize`` must be called whenever the row collection is replaced; the
buffer does it itself after a successful commit.
"""

__all__ = [
    "EditState",
    "LedgerNameEditBuffer",
]


class EditState(Enum):
    IDLE = "idle"
    EDITING = "editing"
    SAVING = "saving"


def _normalize(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class LedgerNameEditBuffer:
    """Dirty-tracking buffer over one row collection of a processed document."""

    def __init__(
        self,
        rows: Iterable[CanonicalLedgerRow] = (),
        *,
        collection: RowCollection = RowCollection.PROCESSED,
    ) -> None:
        self.collection = collection
        self.state = EditState.IDLE
        self._order: list[str] = []
        self._meta: dict[str, tuple[str | int | None, int]] = {}
        self._inputs: dict[str, str] = {}
        self._saved: dict[str, str] = {}
        self._dirty: set[str] = set()
        self.initialize(rows)

    def initialize(self, rows: Iterable[CanonicalLedgerRow]) -> None:
        """Re-key and reseed the buffer from ``rows``, dropping all edits."""
        self._order = []
        self._meta = {}
        self._inputs = {}
        rows = list(rows)
        for idx, (key, row) in enumerate(zip(row_keys(rows), rows)):
            self._order.append(key)
            self._meta[key] = (row_identifier(row), idx)
            self._inputs[key] = _normalize(row.ledger_name)
        self._saved = dict(self._inputs)
        self._dirty = set()
        self.state = EditState.IDLE

    @property
    def keys(self) -> list[str]:
        return list(self._order)

    @property
    def inputs(self) -> dict[str, str]:
        return dict(self._inputs)

    @property
    def saved_snapshot(self) -> dict[str, str]:
        return dict(self._saved)

    @property
    def dirty(self) -> frozenset[str]:
        return frozenset(self._dirty)

    def set_value(self, key: str, value: object) -> None:
        """Record an edit of the ledger name on row ``key``.

        Raises:
            KeyError: If ``key`` does not address a row of the current collection
        """
        if key not in self._inputs:
            raise KeyError(key)
        text = _normalize(value)
        self._inputs[key] = text
        if text == self._saved.get(key, ""):
            self._dirty.discard(key)
        else:
            self._dirty.add(key)
        if self.state is EditState.IDLE:
            self.state = EditState.EDITING

    def changeset(self) -> list[ChangesetEntry]:
        """Entries for every dirty row, in row order."""
        entries: list[ChangesetEntry] = []
        for key in self._order:
            if key not in self._dirty:
                continue
            identifier, index = self._meta[key]
            entries.append(
                ChangesetEntry(
                    row_identifier=identifier,
                    row_index=index,
                    ledger_name=normalize_ledger_name(self._inputs[key]),
                )
            )
        return entries

    def commit(self, protocol: LedgerNamePersistenceProtocol, import_id: str) -> ProcessedDocument | None:
        """Persist the changeset through ``protocol``.

        Returns None without contacting the store when nothing is dirty. On
        success the buffer is re-initialized from the returned document; on
        failure local state is left as it was and the error propagates.

        Raises:
            CommitInProgressError: If a commit from this buffer is still outstanding
        """
        entries = self.changeset()
        if not entries:
            return None
        if self.state is EditState.SAVING:
            raise CommitInProgressError(f"commit already in progress for import {import_id}")

        previous = self.state
        self.state = EditState.SAVING
        try:
            document = protocol.commit(import_id, entries, self.collection)
        except Exception:
            self.state = previous
            raise
        self.initialize(document.rows(self.collection))
        return document
