from __future__ import annotations

from datetime import UTC, datetime

from gstr2b_ledger.models.import_run import ImportRun, ImportStatus
from gstr2b_ledger.models.ledger_row import CanonicalLedgerRow, Slab, SlabLedgerEntry
from gstr2b_ledger.models.processed_document import ProcessedDocument, RowCollection


def _document() -> ProcessedDocument:
    return ProcessedDocument(
        import_id="2024-04",
        company="Acme",
        processed_rows=(
            CanonicalLedgerRow(sl_no=1, vch_no="A").with_slab_entry(
                Slab.GST_12, SlabLedgerEntry(ledger_amount=500.0, side="DR", cgst=30.0, sgst=30.0)
            ),
        ),
        mismatched_rows=(CanonicalLedgerRow(sl_no=1, vch_no="B"),),
        reverse_charge_rows=(CanonicalLedgerRow(sl_no=1, vch_no="C"), CanonicalLedgerRow(sl_no=2, vch_no="D")),
        processed_at=datetime(2024, 5, 1, tzinfo=UTC),
    )


def test_rows_by_collection():
    doc = _document()
    assert doc.rows(RowCollection.PROCESSED)[0].vch_no == "A"
    assert doc.rows(RowCollection.MISMATCHED)[0].vch_no == "B"
    assert [r.vch_no for r in doc.rows(RowCollection.REVERSE_CHARGE)] == ["C", "D"]
    assert doc.total_rows == 4


def test_with_rows_replaces_only_one_collection():
    doc = _document()
    updated = doc.with_rows(RowCollection.MISMATCHED, (CanonicalLedgerRow(sl_no=1, vch_no="Z"),))

    assert updated.mismatched_rows[0].vch_no == "Z"
    assert updated.processed_rows == doc.processed_rows
    assert updated.reverse_charge_rows == doc.reverse_charge_rows
    assert doc.mismatched_rows[0].vch_no == "B"


def test_stored_shape():
    data = _document().to_dict()
    assert data["_id"] == "2024-04"
    assert data["processedAt"] == "2024-05-01T00:00:00Z"
    assert data["updatedAt"] is None
    assert data["processedRows"][0]["slab_12"] == {
        "ledger_amount": 500.0,
        "side": "DR",
        "igst": None,
        "cgst": 30.0,
        "sgst": 30.0,
    }
    assert ProcessedDocument.from_dict(data) == _document()


def test_from_dict_ignores_unknown_row_keys():
    doc = ProcessedDocument.from_dict(
        {"_id": 7, "processedRows": [{"sl_no": 1, "vch_no": "A", "legacy": True}], "processedAt": None}
    )
    assert doc.import_id == "7"
    assert doc.company == "Unknown"
    assert doc.processed_rows == (CanonicalLedgerRow(sl_no=1, vch_no="A"),)


def test_with_slab_entry_clears_other_slabs():
    row = CanonicalLedgerRow().with_slab_entry(Slab.GST_5, SlabLedgerEntry(ledger_amount=1.0))
    row = row.with_slab_entry(Slab.GST_28, SlabLedgerEntry(ledger_amount=2.0))
    assert row.populated_slab is Slab.GST_28
    assert row.slab_5 is None


def test_import_run_totals():
    run = ImportRun(import_id="2024-04", status=ImportStatus.SUCCESS, matched_rows=3, mismatched_rows=1)
    assert run.total_rows == 4
    assert ImportRun(import_id="x").status is ImportStatus.PENDING
