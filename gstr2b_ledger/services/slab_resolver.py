from __future__ import annotations

from dataclasses import dataclass

from ..models.ledger_row import Slab, TaxMode

"""Tax slab resolution.

Infers which statutory slab an invoice belongs to from the ratio of its tax
amount to its taxable value. IGST is checked first; CGST only when there is
no IGST. Slabs are evaluated in ascending order and the first one within
tolerance wins.
"""

__all__ = [
    "SLAB_TOLERANCE",
    "SlabMatch",
    "resolve_slab",
]

# Absolute tolerance in percentage points between effective and nominal rate
SLAB_TOLERANCE = 0.05


@dataclass(frozen=True)
class SlabMatch:
    slab: Slab
    mode: TaxMode


def resolve_slab(taxable_value: float, integrated_tax: float, central_tax: float) -> SlabMatch | None:
    """Return the matching slab and tax mode, or ``None`` when nothing fits.

    Args:
        taxable_value: Taxable value of the invoice (zero never matches)
        integrated_tax: IGST amount
        central_tax: CGST amount

    Returns:
        SlabMatch for the first slab within ``SLAB_TOLERANCE``, else None
    """
    if not taxable_value:
        return None

    if integrated_tax > 0:
        percent = integrated_tax / taxable_value * 100
        for slab in Slab:
            if abs(percent - slab.igst_rate) <= SLAB_TOLERANCE:
                return SlabMatch(slab=slab, mode=TaxMode.IGST)
        return None

    if central_tax > 0:
        percent = central_tax / taxable_value * 100
        for slab in Slab:
            if abs(percent - slab.cgst_rate) <= SLAB_TOLERANCE:
                return SlabMatch(slab=slab, mode=TaxMode.CGST_SGST)
        return None

    return None
