from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RawInvoiceRow model for the GSTR-2B ledger importer.

RawInvoiceRow represents a single invoice line read from the B2B sheet of a
GSTR-2B extract. Values are keyed by field name; the same field may reach us
under more than one name (snake_case key, the camelCase key of older stored
imports, or the sheet header label), so lookups go through ``first_of``.
"""

__all__ = [
    "RawInvoiceRow",
]


@dataclass(frozen=True)
class RawInvoiceRow:
    """One line of the tax-authority extract, immutable once imported.

    The row_number refers to the original sheet row number (1-based) when the
    row came from a workbook, or to the position in the source collection.
    """
    row_number: int  # Sheet row number (or position) of this invoice line
    values: dict[str, Any]  # Field name -> cell value as read
    raw_values: dict[int, Any] | None = None  # Column position -> cleaned cell, for debug output

    def first_of(self, names: tuple[str, ...]) -> Any:
        """Return the first non-missing value among ``names``.

        A value is missing when the key is absent or holds ``None``.
        Returns ``None`` when every alternate is missing.
        """
        for name in names:
            value = self.values.get(name)
            if value is not None:
                return value
        return None
