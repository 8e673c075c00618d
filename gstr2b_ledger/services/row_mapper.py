from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..models.ledger_row import CanonicalLedgerRow
from ..models.raw_invoice import RawInvoiceRow

"""Raw invoice row -> canonical ledger row shell.

Copies, renames and reformats the raw GSTR-2B fields. Knows nothing about
slabs: the shell leaves every slab entry and computed amount empty for the
transformer to fill in.

Lenient parsing policy: an amount cell that is not a number counts as zero
rather than failing the row. ``find_malformed_amounts`` reports such cells so
callers can log them without the mapping itself having side effects.
"""

__all__ = [
    "AMOUNT_FIELDS",
    "DATE_FORMAT",
    "SOURCE_FIELDS",
    "InvoiceAmounts",
    "extract_amounts",
    "find_malformed_amounts",
    "format_date",
    "is_reverse_charge",
    "map_row",
    "parse_amount",
    "resolve_state",
]

DATE_FORMAT = "%d/%m/%Y"

# Canonical raw field -> alternate source names, most specific first
SOURCE_FIELDS: dict[str, tuple[str, ...]] = {
    "gstin": ("gstin", "GSTIN of supplier", "GSTIN"),
    "trade_name": ("trade_name", "tradeName", "Trade/Legal name"),
    "invoice_number": ("invoice_number", "invoiceNumber", "Invoice number"),
    "invoice_type": ("invoice_type", "invoiceType", "Invoice type"),
    "invoice_date": ("invoice_date", "invoiceDate", "Invoice Date"),
    "invoice_value": ("invoice_value", "invoiceValue", "Invoice Value(₹)"),
    "place_of_supply": ("place_of_supply", "placeOfSupply", "Place of supply"),
    "reverse_charge": ("reverse_charge", "reverseCharge", "Supply Attract Reverse Charge"),
    "taxable_value": ("taxable_value", "taxableValue", "Taxable Value (₹)"),
    "igst": ("igst", "integrated_tax", "integratedTax", "Integrated Tax(₹)"),
    "cgst": ("cgst", "central_tax", "centralTax", "Central Tax(₹)"),
    "sgst": ("sgst", "state_tax", "stateTax", "State/UT Tax(₹)"),
    "cess": ("cess", "Cess(₹)"),
}

AMOUNT_FIELDS = ("taxable_value", "invoice_value", "igst", "cgst", "sgst", "cess")

_TEXT_DATE_FORMATS = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y-%m-%d",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d-%b-%y",
    "%d/%m/%y",
)

# Day zero of the Excel 1900 date system (accounts for the 1900 leap-year bug)
_EXCEL_EPOCH = pd.Timestamp("1899-12-30")

_REVERSE_CHARGE_TRUE = {"yes", "y", "1", "true"}


@dataclass(frozen=True)
class InvoiceAmounts:
    """Numeric fields of a raw row after lenient parsing."""
    taxable_value: float = 0.0
    invoice_value: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value: Any) -> bool:
    # numbers.Real covers numpy scalars coming out of pandas
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _try_parse_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if _is_number(value):
        return float(value) if math.isfinite(value) else None
    text = str(value).replace(",", "").strip()
    try:
        parsed = float(text)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_amount(value: Any) -> float:
    """Parse an amount cell; blank or non-numeric values count as zero."""
    if _is_blank(value):
        return 0.0
    parsed = _try_parse_amount(value)
    return 0.0 if parsed is None else parsed


def find_malformed_amounts(raw: RawInvoiceRow) -> list[tuple[str, Any]]:
    """Return (field, value) pairs for non-blank amount cells that are not numbers."""
    malformed: list[tuple[str, Any]] = []
    for name in AMOUNT_FIELDS:
        value = raw.first_of(SOURCE_FIELDS[name])
        if _is_blank(value):
            continue
        if _try_parse_amount(value) is None:
            malformed.append((name, value))
    return malformed


def extract_amounts(raw: RawInvoiceRow) -> InvoiceAmounts:
    return InvoiceAmounts(
        **{name: parse_amount(raw.first_of(SOURCE_FIELDS[name])) for name in AMOUNT_FIELDS}
    )


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric-looking identifiers come back from Excel as floats
        return str(int(value))
    return str(value).strip()


def _format_serial(value: Any) -> str:
    serial = float(value)
    if not math.isfinite(serial):
        return ""
    try:
        stamp = _EXCEL_EPOCH + pd.to_timedelta(serial, unit="D")
    except (OverflowError, ValueError, pd.errors.OutOfBoundsDatetime, pd.errors.OutOfBoundsTimedelta):
        # Out-of-range serials are kept as written
        return _text(value)
    return stamp.strftime(DATE_FORMAT)


def format_date(value: Any) -> str:
    """Normalize a date cell to DD/MM/YYYY.

    Accepts datetime/date objects, pandas timestamps, Excel serial numbers and
    common textual forms. Unparseable text and out-of-range serials are returned
    as written; blanks and infinite serials become "".
    """
    if _is_blank(value):
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime(DATE_FORMAT)
    if _is_number(value):
        return _format_serial(value)
    text = str(value).strip()
    for fmt in _TEXT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime(DATE_FORMAT)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).strftime(DATE_FORMAT)
    except ValueError:
        return text


def resolve_state(gstin: str, state_codes: dict[str, str]) -> str:
    """Look up the state name for the two-digit prefix of a GSTIN."""
    code = gstin[:2]
    if len(code) < 2:
        return ""
    return state_codes.get(code, "")


def is_reverse_charge(raw: RawInvoiceRow) -> bool:
    """True when the "Supply Attract Reverse Charge" cell is a yes-like value."""
    value = raw.first_of(SOURCE_FIELDS["reverse_charge"])
    if isinstance(value, bool):
        return value
    if _is_blank(value):
        return False
    if _is_number(value):
        return value == 1
    return str(value).strip().lower() in _REVERSE_CHARGE_TRUE


def map_row(raw: RawInvoiceRow, state_codes: dict[str, str], sl_no: int | None = None) -> CanonicalLedgerRow:
    """Build the canonical row shell for ``raw``.

    Args:
        raw: Raw invoice line
        state_codes: Two-character GST state code -> state name
        sl_no: Serial number to stamp on the row

    Returns:
        CanonicalLedgerRow with identity, supplier and date columns filled and
        all slab/amount columns left empty
    """
    gstin = _text(raw.first_of(SOURCE_FIELDS["gstin"])).upper()
    invoice_number = _text(raw.first_of(SOURCE_FIELDS["invoice_number"]))
    invoice_date = format_date(raw.first_of(SOURCE_FIELDS["invoice_date"]))

    return CanonicalLedgerRow(
        sl_no=sl_no,
        date=invoice_date,
        vch_no=invoice_number,
        reference_no=invoice_number,
        reference_date=invoice_date,
        supplier_name=_text(raw.first_of(SOURCE_FIELDS["trade_name"])),
        gst_registration_type=_text(raw.first_of(SOURCE_FIELDS["invoice_type"])),
        gstin_uin=gstin,
        state=resolve_state(gstin, state_codes),
        supplier_state=_text(raw.first_of(SOURCE_FIELDS["place_of_supply"])),
    )
