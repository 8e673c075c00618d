from __future__ import annotations

from pathlib import Path

from gstr2b_ledger.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL
from gstr2b_ledger.cli.__main__ import main as cli_main

"""Exit code contract tests."""


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # config/ledger.yml missing
    code = cli_main(["process"])
    assert code == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_all_success(temp_workdir: Path, write_config, b2b_line, gstr2b_workbook, capsys):
    for import_id in ("2024-04", "2024-05"):
        gstr2b_workbook(
            temp_workdir / "data" / f"{import_id}.xlsx",
            [b2b_line(invoice_number=f"{import_id}-1", taxable_value=1000, igst=180)],
        )

    code = cli_main(["process"])

    assert code == EXIT_SUCCESS_ALL
    assert "SUMMARY imports=2/2 success=2 failed=0" in capsys.readouterr().out


def test_exit_code_partial_failure(temp_workdir: Path, write_config, b2b_line, gstr2b_workbook, capsys):
    gstr2b_workbook(temp_workdir / "data" / "2024-04.xlsx", [b2b_line(invoice_number="A", taxable_value=100)])
    gstr2b_workbook(temp_workdir / "data" / "2024-05.xlsx", [b2b_line(invoice_number="B")], sheet_name="CDNR")

    code = cli_main(["process"])

    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    assert "SUMMARY imports=2/2 success=1 failed=1" in out
    assert "ERROR import=2024-05 'B2B' sheet not found" in out
