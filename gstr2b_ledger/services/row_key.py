from __future__ import annotations

from collections.abc import Iterable

from ..models.ledger_row import CanonicalLedgerRow

"""Row key derivation.

Every component that addresses a ledger row by key (edit buffer, persistence
protocol, CLI) goes through ``row_key``. Keys are only meaningful for the row
collection they were computed from; recompute after the collection changes.
"""

__all__ = [
    "row_identifier",
    "row_key",
    "row_keys",
]


def row_identifier(row: CanonicalLedgerRow) -> str | int | None:
    """Best available identifier: persisted id, else declared serial number."""
    if row.row_id not in (None, ""):
        return row.row_id
    return row.sl_no


def row_key(row: CanonicalLedgerRow, index: int) -> str:
    """Stable key of ``row`` at position ``index`` in its collection."""
    identifier = row_identifier(row)
    if identifier is None:
        return str(index)
    return str(identifier)


def row_keys(rows: Iterable[CanonicalLedgerRow]) -> list[str]:
    """Keys for a whole collection, one distinct key per row.

    A row whose key is already taken (repeated persisted id or serial number)
    is keyed ``"<key>#<index>"`` instead.
    """
    keys: list[str] = []
    seen: set[str] = set()
    for idx, row in enumerate(rows):
        key = row_key(row, idx)
        while key in seen:
            key = f"{key}#{idx}"
        seen.add(key)
        keys.append(key)
    return keys
