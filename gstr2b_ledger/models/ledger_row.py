from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any

"""Canonical ledger row model.

A CanonicalLedgerRow is the fixed-shape output of transforming one raw invoice
line. Per-slab columns are grouped into one optional SlabLedgerEntry per slab,
so a row can only ever carry amounts for the slab it was resolved to.

Two serialised forms exist:

- ``to_dict`` / ``from_dict``: snake_case keys, used by the document stores.
- ``to_export_record``: the 39 ordered column labels of the bookkeeping
  import sheet, used by the export writer.
"""

__all__ = [
    "Slab",
    "TaxMode",
    "SlabLedgerEntry",
    "CanonicalLedgerRow",
    "EXPORT_COLUMNS",
    "VOUCHER_TYPE",
    "SUPPLIER_SIDE",
    "LEDGER_SIDE",
    "CHANGE_MODE",
]

VOUCHER_TYPE = "PURCHASE"
SUPPLIER_SIDE = "CR"
LEDGER_SIDE = "DR"
CHANGE_MODE = "Accounting Invoice"


class Slab(Enum):
    """Statutory GST rate tiers, in ascending nominal-rate order."""
    GST_5 = 5
    GST_12 = 12
    GST_18 = 18
    GST_28 = 28

    @property
    def label(self) -> str:
        return f"{self.value}%"

    @property
    def igst_rate(self) -> float:
        return float(self.value)

    @property
    def cgst_rate(self) -> float:
        # CGST and SGST each carry half of the slab rate
        return self.value / 2


class TaxMode(Enum):
    """Which tax components a resolved slab applies to."""
    IGST = "IGST"
    CGST_SGST = "CGST_SGST"


@dataclass(frozen=True)
class SlabLedgerEntry:
    """Ledger columns of a single slab (amount, side, and tax components)."""
    ledger_amount: float | None = None
    side: str | None = None
    igst: float | None = None
    cgst: float | None = None
    sgst: float | None = None

    def tax_components(self) -> list[float]:
        """The tax amounts that are set on this entry (IGST, or CGST + SGST)."""
        return [v for v in (self.igst, self.cgst, self.sgst) if v is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ledger_amount": self.ledger_amount,
            "side": self.side,
            "igst": self.igst,
            "cgst": self.cgst,
            "sgst": self.sgst,
        }

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> SlabLedgerEntry | None:
        if not data:
            return None
        return SlabLedgerEntry(
            ledger_amount=data.get("ledger_amount"),
            side=data.get("side"),
            igst=data.get("igst"),
            cgst=data.get("cgst"),
            sgst=data.get("sgst"),
        )


_SLAB_ATTRS: dict[Slab, str] = {
    Slab.GST_5: "slab_5",
    Slab.GST_12: "slab_12",
    Slab.GST_18: "slab_18",
    Slab.GST_28: "slab_28",
}

_HEAD_COLUMNS: list[tuple[str, str]] = [
    ("sl_no", "Sl No"),
    ("date", "Date"),
    ("vch_no", "Vch No"),
    ("vch_type", "Vch Type"),
    ("reference_no", "Reference No."),
    ("reference_date", "Reference Date"),
    ("supplier_name", "Supplier Name"),
    ("gst_registration_type", "GST Registration Type"),
    ("gstin_uin", "GSTIN/UIN"),
    ("state", "State"),
    ("supplier_state", "Supplier State"),
    ("supplier_amount", "Supplier Amount"),
    ("supplier_side", "Supplier Dr/Cr"),
    ("ledger_name", "Ledger Name"),
]

_TAIL_COLUMNS: list[tuple[str, str]] = [
    ("gross_amount", "Gro. Amount"),
    ("rounding_debit", "Round Off Dr"),
    ("rounding_credit", "Round Off Cr"),
    ("invoice_amount", "Invoice Amount"),
    ("change_mode", "Change Mode"),
]


def _slab_columns(slab: Slab) -> list[tuple[str, str]]:
    label = slab.label
    return [
        ("ledger_amount", f"Ledger Amount {label}"),
        ("side", f"Ledger DR/CR {label}"),
        ("igst", f"IGST Rate {label}"),
        ("cgst", f"CGST Rate {label}"),
        ("sgst", f"SGST/UTGST Rate {label}"),
    ]


EXPORT_COLUMNS: list[str] = (
    [label for _, label in _HEAD_COLUMNS]
    + [label for slab in Slab for _, label in _slab_columns(slab)]
    + [label for _, label in _TAIL_COLUMNS]
)


@dataclass(frozen=True)
class CanonicalLedgerRow:
    """Normalized accounting-ledger entry for one purchase invoice.

    String columns default to the empty string; numeric columns that carry no
    value are ``None`` and are exported as empty cells. ``row_id`` is the
    persisted identifier of the row, when the store assigned one.
    """
    sl_no: int | None = None
    date: str = ""
    vch_no: str = ""
    vch_type: str = VOUCHER_TYPE
    reference_no: str = ""
    reference_date: str = ""
    supplier_name: str = ""
    gst_registration_type: str = ""
    gstin_uin: str = ""
    state: str = ""
    supplier_state: str = ""
    supplier_amount: float | None = None
    supplier_side: str = SUPPLIER_SIDE
    ledger_name: str | None = None
    slab_5: SlabLedgerEntry | None = None
    slab_12: SlabLedgerEntry | None = None
    slab_18: SlabLedgerEntry | None = None
    slab_28: SlabLedgerEntry | None = None
    gross_amount: float | None = None
    rounding_debit: float | None = None
    rounding_credit: float | None = None
    invoice_amount: float | None = None
    change_mode: str = CHANGE_MODE
    row_id: str | None = None

    def slab_entry(self, slab: Slab) -> SlabLedgerEntry | None:
        return getattr(self, _SLAB_ATTRS[slab])

    def with_slab_entry(self, slab: Slab, entry: SlabLedgerEntry) -> CanonicalLedgerRow:
        """Return a copy with ``entry`` on ``slab`` and every other slab cleared."""
        cleared: dict[str, Any] = {attr: None for attr in _SLAB_ATTRS.values()}
        cleared[_SLAB_ATTRS[slab]] = entry
        return replace(self, **cleared)

    @property
    def populated_slab(self) -> Slab | None:
        for slab in Slab:
            if self.slab_entry(slab) is not None:
                return slab
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, SlabLedgerEntry):
                value = value.to_dict()
            data[f.name] = value
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> CanonicalLedgerRow:
        """Build a row from its stored form, ignoring unknown keys."""
        known = {f.name for f in fields(CanonicalLedgerRow)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key in _SLAB_ATTRS.values():
                value = SlabLedgerEntry.from_dict(value)
            kwargs[key] = value
        return CanonicalLedgerRow(**kwargs)

    def to_export_record(self) -> dict[str, Any]:
        """Ordered mapping of export column label -> cell value ("" for empty)."""
        record: dict[str, Any] = {}
        for attr, label in _HEAD_COLUMNS:
            record[label] = _cell(getattr(self, attr))
        for slab in Slab:
            entry = self.slab_entry(slab)
            for attr, label in _slab_columns(slab):
                record[label] = _cell(getattr(entry, attr) if entry is not None else None)
        for attr, label in _TAIL_COLUMNS:
            record[label] = _cell(getattr(self, attr))
        return record


def _cell(value: Any) -> Any:
    return "" if value is None else value
