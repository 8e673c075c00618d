from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .ledger_row import CanonicalLedgerRow

"""ProcessedDocument model.

The persisted result of transforming one GSTR-2B import. A document is read
and written as one unit: stores replace it wholesale, and the ledger-name
update path produces a new document rather than patching rows in place.
"""

__all__ = [
    "RowCollection",
    "ProcessedDocument",
]


class RowCollection(Enum):
    """Addressable row partitions of a processed document."""
    PROCESSED = "processedRows"
    MISMATCHED = "mismatchedRows"
    REVERSE_CHARGE = "reverseChargeRows"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ProcessedDocument:
    """Matched / mismatched (and optionally reverse-charge) ledger rows of one import."""
    import_id: str
    company: str
    processed_rows: tuple[CanonicalLedgerRow, ...] = ()
    mismatched_rows: tuple[CanonicalLedgerRow, ...] = ()
    reverse_charge_rows: tuple[CanonicalLedgerRow, ...] = ()
    processed_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None

    def rows(self, collection: RowCollection) -> tuple[CanonicalLedgerRow, ...]:
        if collection is RowCollection.PROCESSED:
            return self.processed_rows
        if collection is RowCollection.MISMATCHED:
            return self.mismatched_rows
        return self.reverse_charge_rows

    def with_rows(
        self, collection: RowCollection, rows: tuple[CanonicalLedgerRow, ...]
    ) -> ProcessedDocument:
        """Return a copy whose ``collection`` is replaced by ``rows``."""
        attr = {
            RowCollection.PROCESSED: "processed_rows",
            RowCollection.MISMATCHED: "mismatched_rows",
            RowCollection.REVERSE_CHARGE: "reverse_charge_rows",
        }[collection]
        return replace(self, **{attr: tuple(rows)})

    @property
    def total_rows(self) -> int:
        return len(self.processed_rows) + len(self.mismatched_rows) + len(self.reverse_charge_rows)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored JSON shape (``_id`` keyed, camelCase collections)."""
        return {
            "_id": self.import_id,
            "company": self.company,
            RowCollection.PROCESSED.value: [r.to_dict() for r in self.processed_rows],
            RowCollection.MISMATCHED.value: [r.to_dict() for r in self.mismatched_rows],
            RowCollection.REVERSE_CHARGE.value: [r.to_dict() for r in self.reverse_charge_rows],
            "processedAt": _format_timestamp(self.processed_at),
            "updatedAt": _format_timestamp(self.updated_at),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ProcessedDocument:
        def _rows(key: str) -> tuple[CanonicalLedgerRow, ...]:
            raw = data.get(key) or []
            return tuple(CanonicalLedgerRow.from_dict(r) for r in raw if isinstance(r, dict))

        return ProcessedDocument(
            import_id=str(data["_id"]),
            company=data.get("company") or "Unknown",
            processed_rows=_rows(RowCollection.PROCESSED.value),
            mismatched_rows=_rows(RowCollection.MISMATCHED.value),
            reverse_charge_rows=_rows(RowCollection.REVERSE_CHARGE.value),
            processed_at=_parse_timestamp(data.get("processedAt")) or _utcnow(),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )
