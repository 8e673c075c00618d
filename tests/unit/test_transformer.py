from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gstr2b_ledger.models.ledger_row import LEDGER_SIDE, Slab, TaxMode
from gstr2b_ledger.services.transformer import transform, transform_row

FIXED_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)


class TestTransformRow:
    def test_igst_exact_slab(self, make_raw, state_codes):
        result = transform_row(make_raw(taxableValue=1000, integratedTax=180), state_codes)

        assert result.matched
        assert result.slab_match.slab is Slab.GST_18
        assert result.slab_match.mode is TaxMode.IGST
        entry = result.row.slab_18
        assert entry.ledger_amount == 1000.0
        assert entry.side == LEDGER_SIDE
        assert entry.igst == 180.0
        assert entry.cgst is None and entry.sgst is None
        assert result.row.gross_amount == 1180.0
        assert result.row.invoice_amount == 1180.0
        assert result.row.supplier_amount == 1180.0
        assert result.row.rounding_debit is None
        assert result.row.rounding_credit is None

        record = result.row.to_export_record()
        assert record["IGST Rate 18%"] == 180.0
        assert record["Ledger Amount 18%"] == 1000.0
        assert record["Ledger DR/CR 18%"] == "DR"
        assert record["IGST Rate 5%"] == ""

    def test_fractional_gross_rounds_down_with_debit(self, make_raw, state_codes):
        result = transform_row(make_raw(taxableValue=1000.30, integratedTax=50.015), state_codes)

        assert result.slab_match.slab is Slab.GST_5
        assert result.row.gross_amount == 1050.32
        assert result.row.rounding_debit == 0.32
        assert result.row.rounding_credit is None
        assert result.row.invoice_amount == 1050.0

    def test_fractional_gross_rounds_up_with_credit(self, make_raw, state_codes):
        result = transform_row(make_raw(taxable_value=1000.6, igst=180.108), state_codes)

        assert result.slab_match.slab is Slab.GST_18
        assert result.row.gross_amount == 1180.71
        assert result.row.rounding_credit == 0.29
        assert result.row.rounding_debit is None
        assert result.row.invoice_amount == 1181.0

    def test_zero_taxable_value_is_unmatched(self, make_raw, state_codes):
        result = transform_row(make_raw(taxableValue=0, integratedTax=180), state_codes)

        assert not result.matched
        assert all(result.row.slab_entry(slab) is None for slab in Slab)
        # Unmatched rows still carry the raw tax sum
        assert result.row.gross_amount == 180.0
        assert result.row.invoice_amount == 180.0

    def test_cgst_sgst_slab(self, make_raw, state_codes):
        result = transform_row(make_raw(taxable_value=1000, cgst=60, sgst=60), state_codes)

        assert result.slab_match.slab is Slab.GST_12
        assert result.slab_match.mode is TaxMode.CGST_SGST
        entry = result.row.slab_12
        assert entry.igst is None
        assert entry.cgst == 60.0
        assert entry.sgst == 60.0
        assert result.row.gross_amount == 1120.0
        assert result.row.populated_slab is Slab.GST_12

    def test_unmatched_rate_keeps_computed_amounts(self, make_raw, state_codes):
        result = transform_row(make_raw(taxable_value=1000, igst=70.6), state_codes)

        assert not result.matched
        assert result.row.gross_amount == 1070.6
        assert result.row.rounding_credit == 0.4
        assert result.row.invoice_amount == 1071.0

    def test_igst_slab_ignores_zero_cgst_sgst_columns(self, make_raw, state_codes):
        result = transform_row(make_raw(taxable_value=1000, igst=180, cgst=0, sgst=0), state_codes)
        assert result.row.gross_amount == 1180.0

    def test_malformed_amount_counts_as_zero(self, make_raw, state_codes):
        result = transform_row(make_raw(taxable_value="n/a", igst=180), state_codes)
        assert not result.matched
        assert result.row.gross_amount == 180.0

    @pytest.mark.parametrize(("serial", "expected"), [(9.9e9, "9900000000"), (float("inf"), "")])
    def test_unusable_date_serial_does_not_fail_the_row(self, make_raw, state_codes, serial, expected):
        result = transform_row(make_raw(taxable_value=1000, igst=180, invoice_date=serial), state_codes)

        assert result.matched
        assert result.row.date == expected
        assert result.row.reference_date == expected

    def test_reverse_charge_flag_is_reported(self, make_raw, state_codes):
        assert transform_row(make_raw(taxable_value=100, igst=18, reverse_charge="Yes"), state_codes).reverse_charge
        assert not transform_row(make_raw(taxable_value=100, igst=18), state_codes).reverse_charge


class TestTransform:
    def test_partitions_and_renumbers(self, make_raw, state_codes):
        raws = [
            make_raw(invoice_number="A", taxable_value=1000, igst=180),
            make_raw(invoice_number="B", taxable_value=0, igst=10),
            make_raw(invoice_number="C", taxable_value=500, cgst=12.5, sgst=12.5),
            make_raw(invoice_number="D", taxable_value=1000, igst=70),
        ]
        doc = transform(raws, state_codes, import_id="2024-04", company="Acme")

        assert doc.import_id == "2024-04"
        assert doc.company == "Acme"
        assert [r.vch_no for r in doc.processed_rows] == ["A", "C"]
        assert [r.sl_no for r in doc.processed_rows] == [1, 2]
        assert [r.vch_no for r in doc.mismatched_rows] == ["B", "D"]
        assert [r.sl_no for r in doc.mismatched_rows] == [1, 2]
        assert doc.reverse_charge_rows == ()
        assert doc.total_rows == 4

    def test_same_input_gives_same_document(self, make_raw, state_codes):
        raws = [
            make_raw(taxable_value=1000.30, igst=50.015),
            make_raw(taxable_value=1000, cgst=90, sgst=90),
            make_raw(taxable_value=0),
        ]
        first = transform(raws, state_codes, import_id="x", processed_at=FIXED_TIME)
        second = transform(raws, state_codes, import_id="x", processed_at=FIXED_TIME)
        assert first == second

    def test_reverse_charge_rows_stay_in_main_partitions_by_default(self, make_raw, state_codes):
        raws = [make_raw(taxable_value=100, igst=18, reverse_charge="Yes")]
        doc = transform(raws, state_codes)
        assert len(doc.processed_rows) == 1
        assert doc.reverse_charge_rows == ()

    def test_reverse_charge_separation(self, make_raw, state_codes):
        raws = [
            make_raw(invoice_number="A", taxable_value=100, igst=18),
            make_raw(invoice_number="RC1", taxable_value=100, igst=18, reverse_charge="Yes"),
            make_raw(invoice_number="RC2", taxable_value=0, reverse_charge="Y"),
        ]
        doc = transform(raws, state_codes, separate_reverse_charge=True)

        assert [r.vch_no for r in doc.processed_rows] == ["A"]
        assert doc.mismatched_rows == ()
        assert [r.vch_no for r in doc.reverse_charge_rows] == ["RC1", "RC2"]
        assert [r.sl_no for r in doc.reverse_charge_rows] == [1, 2]
        # Transformed identically to a regular row
        assert doc.reverse_charge_rows[0].slab_18.igst == 18.0

    def test_processed_at_is_stamped(self, make_raw, state_codes):
        doc = transform([make_raw(taxable_value=1, igst=0.05)], state_codes, processed_at=FIXED_TIME)
        assert doc.processed_at == FIXED_TIME

    def test_empty_input(self, state_codes):
        doc = transform([], state_codes, import_id="empty")
        assert doc.total_rows == 0
