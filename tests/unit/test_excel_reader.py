from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from gstr2b_ledger.excel.reader import (
    DATA_START_ROW,
    ExcelImportSource,
    ImportSourceError,
    SheetHeaderError,
    _tax_rate_percent,
    read_b2b_sheet,
)
from gstr2b_ledger.services.row_mapper import find_malformed_amounts, map_row


def test_reads_lines_below_header_block(tmp_path: Path, b2b_line, gstr2b_workbook):
    path = gstr2b_workbook(
        tmp_path / "2024-04.xlsx",
        [
            b2b_line(
                gstin=" 27AAACA1234A1Z5 ",
                trade_name="Acme Supplies",
                invoice_number="INV-1",
                invoice_value=1180,
                reverse_charge="No",
                taxable_value=1000,
                igst=180,
                tax_rate_percent=0.18,
            ),
            b2b_line(invoice_number="INV-2", taxable_value=500.5, tax_rate_percent=12),
        ],
    )

    rows = read_b2b_sheet(path)

    assert len(rows) == 2
    first = rows[0]
    assert first.row_number == DATA_START_ROW + 1 == 7
    assert first.values["gstin"] == "27AAACA1234A1Z5"
    assert first.values["invoice_number"] == "INV-1"
    assert first.values["taxable_value"] == 1000
    assert first.values["igst"] == 180
    assert first.values["cgst"] is None
    assert first.values["tax_rate_percent"] == 18.0
    assert first.raw_values[0] == "27AAACA1234A1Z5"
    assert rows[1].values["tax_rate_percent"] == 12
    assert rows[1].values["taxable_value"] == 500.5


def test_blank_lines_are_skipped(tmp_path: Path, b2b_line, gstr2b_workbook):
    path = gstr2b_workbook(
        tmp_path / "x.xlsx",
        [b2b_line(invoice_number="A", taxable_value=1), b2b_line(trade_name="   "), b2b_line(invoice_number="B")],
    )
    assert [r.values["invoice_number"] for r in read_b2b_sheet(path)] == ["A", "B"]


def test_na_like_text_is_kept(tmp_path: Path, b2b_line, gstr2b_workbook):
    path = gstr2b_workbook(
        tmp_path / "x.xlsx",
        [
            b2b_line(invoice_number="A", trade_name="NA", taxable_value=1000, igst="n/a"),
            b2b_line(invoice_number="B", trade_name="Acme", taxable_value="N/A", cgst="null", sgst="NaN"),
        ],
    )

    first, second = read_b2b_sheet(path)

    assert first.values["trade_name"] == "NA"
    assert first.values["igst"] == "n/a"
    assert first.values["cgst"] is None
    assert map_row(first, {}).supplier_name == "NA"
    assert find_malformed_amounts(first) == [("igst", "n/a")]
    assert find_malformed_amounts(second) == [
        ("taxable_value", "N/A"),
        ("cgst", "null"),
        ("sgst", "NaN"),
    ]


def test_fractional_rate_column_is_scaled(tmp_path: Path, b2b_line, gstr2b_workbook):
    path = gstr2b_workbook(
        tmp_path / "x.xlsx",
        [
            b2b_line(invoice_number="A", tax_rate_percent=0),
            b2b_line(invoice_number="B", tax_rate_percent=1),
            b2b_line(invoice_number="C", tax_rate_percent=28),
        ],
    )
    rates = [r.values["tax_rate_percent"] for r in read_b2b_sheet(path)]
    assert rates == [0.0, 100.0, 28]


@pytest.mark.parametrize(
    ("value", "expected"),
    [(np.int64(1), 100.0), (np.int64(0), 0.0), (np.float64(0.05), 5.0), (18, 18), ("18%", "18%")],
)
def test_tax_rate_percent_scaling(value, expected):
    assert _tax_rate_percent(value) == expected


def test_header_only_sheet(tmp_path: Path, gstr2b_workbook):
    assert read_b2b_sheet(gstr2b_workbook(tmp_path / "x.xlsx", [])) == []


def test_missing_b2b_sheet(tmp_path: Path, b2b_line, gstr2b_workbook):
    path = gstr2b_workbook(tmp_path / "x.xlsx", [b2b_line(invoice_number="A")], sheet_name="CDNR")
    with pytest.raises(SheetHeaderError, match="'B2B' sheet not found"):
        read_b2b_sheet(path)


class TestExcelImportSource:
    def test_lists_workbook_stems_sorted(self, tmp_path: Path, gstr2b_workbook):
        gstr2b_workbook(tmp_path / "2024-05.xlsx", [])
        gstr2b_workbook(tmp_path / "2024-04.xlsx", [])
        (tmp_path / "~$2024-04.xlsx").write_bytes(b"lock")
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")

        assert ExcelImportSource(tmp_path).list_imports() == ["2024-04", "2024-05"]

    def test_fetch(self, tmp_path: Path, b2b_line, gstr2b_workbook):
        gstr2b_workbook(tmp_path / "2024-04.xlsx", [b2b_line(invoice_number="A")])
        source = ExcelImportSource(tmp_path)

        assert source.path_for("2024-04") == tmp_path / "2024-04.xlsx"
        assert [r.values["invoice_number"] for r in source.fetch("2024-04")] == ["A"]

    def test_fetch_unknown_import(self, tmp_path: Path):
        with pytest.raises(ImportSourceError, match="import not found: 2024-09"):
            ExcelImportSource(tmp_path).fetch("2024-09")

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(ImportSourceError, match="source directory not found"):
            ExcelImportSource(tmp_path / "nope").list_imports()
