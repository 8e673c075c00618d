from __future__ import annotations

import numbers
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.raw_invoice import RawInvoiceRow

"""GSTR-2B workbook reader.

The B2B sheet of a GSTR-2B extract carries a multi-row title/header block;
invoice lines start at sheet row index 6 (the 7th row). Columns are read by
position following HEADER_SEQUENCE, so header wording changes between portal
releases do not matter.
"""

__all__ = [
    "B2B_SHEET_NAME",
    "DATA_START_ROW",
    "HEADER_SEQUENCE",
    "NA_VALUES",
    "ExcelImportSource",
    "ImportSourceError",
    "SheetHeaderError",
    "read_b2b_sheet",
]

B2B_SHEET_NAME = "B2B"
DATA_START_ROW = 6
NA_VALUES = [""]

HEADER_SEQUENCE: tuple[str, ...] = (
    "gstin",
    "trade_name",
    "invoice_number",
    "invoice_type",
    "invoice_date",
    "invoice_value",
    "place_of_supply",
    "reverse_charge",
    "taxable_value",
    "igst",
    "cgst",
    "sgst",
    "cess",
    "gstr_period",
    "gstr_filing_date",
    "itc_availability",
    "reason",
    "tax_rate_percent",
    "source",
    "irn",
    "irn_date",
)


class SheetHeaderError(Exception):
    """Raised when the workbook has no B2B sheet."""


class ImportSourceError(Exception):
    """Raised when an import cannot be located or read."""


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if pd.isna(value):
        return None
    return value


def _tax_rate_percent(value: Any) -> Any:
    # Percent-formatted cells arrive as fractions (0.18 for 18%)
    if isinstance(value, numbers.Real) and not isinstance(value, bool) and abs(value) <= 1:
        return round(float(value) * 100, 2)
    return value


def read_b2b_sheet(path: Path) -> list[RawInvoiceRow]:
    """Read invoice lines from the B2B sheet of a workbook.

    Args:
        path: Workbook path

    Returns:
        Raw rows in sheet order; fully blank lines are skipped. ``row_number``
        is the 1-based sheet row.

    Raises:
        SheetHeaderError: The workbook has no B2B sheet
    """
    xls = pd.ExcelFile(path)
    if B2B_SHEET_NAME not in [str(n) for n in xls.sheet_names]:
        raise SheetHeaderError(f"'{B2B_SHEET_NAME}' sheet not found in workbook: {path.name}")
    # Only empty cells are NA; text such as "NA" or "n/a" is kept as written
    df = xls.parse(B2B_SHEET_NAME, header=None, keep_default_na=False, na_values=NA_VALUES)
    if df.shape[0] <= DATA_START_ROW:
        return []

    rows: list[RawInvoiceRow] = []
    for offset, (_, raw) in enumerate(df.iloc[DATA_START_ROW:].iterrows()):
        cells = [_clean_cell(v) for v in raw.tolist()]
        if all(c is None for c in cells):
            continue
        values: dict[str, Any] = {}
        for idx, key in enumerate(HEADER_SEQUENCE):
            values[key] = cells[idx] if idx < len(cells) else None
        values["tax_rate_percent"] = _tax_rate_percent(values["tax_rate_percent"])
        rows.append(
            RawInvoiceRow(
                row_number=DATA_START_ROW + offset + 1,
                values=values,
                raw_values=dict(enumerate(cells)),
            )
        )
    return rows


class ExcelImportSource:
    """Imports backed by a directory of GSTR-2B workbooks.

    The import identifier is the workbook's file stem.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def list_imports(self) -> list[str]:
        if not self.directory.exists():
            raise ImportSourceError(f"source directory not found: {self.directory}")
        return sorted(p.stem for p in self.directory.glob("*.xlsx") if not p.name.startswith("~$"))

    def path_for(self, import_id: str) -> Path:
        return self.directory / f"{import_id}.xlsx"

    def fetch(self, import_id: str) -> list[RawInvoiceRow]:
        path = self.path_for(import_id)
        if not path.exists():
            raise ImportSourceError(f"import not found: {import_id}")
        return read_b2b_sheet(path)
