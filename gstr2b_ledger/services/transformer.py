from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from ..models.ledger_row import LEDGER_SIDE, CanonicalLedgerRow, SlabLedgerEntry, TaxMode
from ..models.processed_document import ProcessedDocument
from ..models.raw_invoice import RawInvoiceRow
from .rounding import allocate_rounding, round2, to_decimal
from .row_mapper import InvoiceAmounts, extract_amounts, is_reverse_charge, map_row
from .slab_resolver import SlabMatch, resolve_slab

"""Row transformer: raw invoice rows -> processed document.

Per row: map the raw columns onto the canonical shell, resolve the slab,
populate the slab's ledger columns, compute gross amount and the rounding
entry. The full set is then partitioned into matched and mismatched rows (and
reverse-charge rows when that separation is enabled), each partition numbered
from 1 in input order.

``transform`` has no side effects and no hidden state: the same raw rows and
state-code table always give the same rows.
"""

__all__ = [
    "TransformedRow",
    "transform",
    "transform_row",
]


@dataclass(frozen=True)
class TransformedRow:
    """One transformed row plus the facts used to partition it."""
    row: CanonicalLedgerRow
    slab_match: SlabMatch | None
    reverse_charge: bool = False

    @property
    def matched(self) -> bool:
        return self.slab_match is not None


def _slab_entry(match: SlabMatch, amounts: InvoiceAmounts) -> SlabLedgerEntry:
    if match.mode is TaxMode.IGST:
        return SlabLedgerEntry(
            ledger_amount=amounts.taxable_value,
            side=LEDGER_SIDE,
            igst=amounts.igst,
        )
    return SlabLedgerEntry(
        ledger_amount=amounts.taxable_value,
        side=LEDGER_SIDE,
        cgst=amounts.cgst,
        sgst=amounts.sgst,
    )


def transform_row(
    raw: RawInvoiceRow, state_codes: dict[str, str], sl_no: int | None = None
) -> TransformedRow:
    """Transform a single raw row.

    Args:
        raw: Raw invoice line
        state_codes: Two-character GST state code -> state name
        sl_no: Serial number to stamp on the resulting row

    Returns:
        TransformedRow; ``matched`` is False when no slab fits, in which case
        the row still carries best-effort gross/rounding/invoice amounts
    """
    row = map_row(raw, state_codes, sl_no=sl_no)
    amounts = extract_amounts(raw)
    match = resolve_slab(amounts.taxable_value, amounts.igst, amounts.cgst)

    parsed_taxes = Decimal(0)
    if match is not None:
        entry = _slab_entry(match, amounts)
        row = row.with_slab_entry(match.slab, entry)
        parsed_taxes = sum((to_decimal(v) for v in entry.tax_components()), Decimal(0))

    if parsed_taxes == 0:
        # Unmatched row, or a matched slab whose own tax columns sum to zero
        parsed_taxes = to_decimal(amounts.igst) + to_decimal(amounts.cgst) + to_decimal(amounts.sgst)

    gross_amount = round2(to_decimal(amounts.taxable_value) + parsed_taxes)
    rounding = allocate_rounding(gross_amount)

    row = replace(
        row,
        gross_amount=gross_amount,
        rounding_debit=rounding.rounding_debit or None,
        rounding_credit=rounding.rounding_credit or None,
        invoice_amount=rounding.invoice_amount,
        supplier_amount=rounding.invoice_amount,
    )
    return TransformedRow(row=row, slab_match=match, reverse_charge=is_reverse_charge(raw))


def _renumber(rows: list[CanonicalLedgerRow]) -> tuple[CanonicalLedgerRow, ...]:
    return tuple(replace(r, sl_no=idx + 1) for idx, r in enumerate(rows))


def transform(
    raw_rows: Iterable[RawInvoiceRow],
    state_codes: dict[str, str],
    *,
    import_id: str = "",
    company: str = "Unknown",
    separate_reverse_charge: bool = False,
    processed_at: datetime | None = None,
) -> ProcessedDocument:
    """Transform every raw row of one import into a ProcessedDocument.

    Args:
        raw_rows: Ordered raw rows of the import
        state_codes: Complete state-code lookup table
        import_id: Identifier of the import the document belongs to
        company: Company the extract was filed for
        separate_reverse_charge: Route reverse-charge rows into their own
            partition instead of matched/mismatched
        processed_at: Timestamp to stamp on the document (defaults to now)

    Returns:
        ProcessedDocument with renumbered partitions
    """
    matched: list[CanonicalLedgerRow] = []
    mismatched: list[CanonicalLedgerRow] = []
    reverse_charge: list[CanonicalLedgerRow] = []

    for raw in raw_rows:
        result = transform_row(raw, state_codes)
        if separate_reverse_charge and result.reverse_charge:
            reverse_charge.append(result.row)
        elif result.matched:
            matched.append(result.row)
        else:
            mismatched.append(result.row)

    document = ProcessedDocument(
        import_id=import_id,
        company=company,
        processed_rows=_renumber(matched),
        mismatched_rows=_renumber(mismatched),
        reverse_charge_rows=_renumber(reverse_charge),
    )
    if processed_at is not None:
        document = replace(document, processed_at=processed_at)
    return document
