# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from gstr2b_ledger.config.state_codes import load_state_codes
from gstr2b_ledger.excel.reader import HEADER_SEQUENCE
from gstr2b_ledger.logging.init import reset_logging
from gstr2b_ledger.models.raw_invoice import RawInvoiceRow

# Six rows above the data, like the portal download
B2B_HEADER_BLOCK: list[list[Any]] = [
    ["Goods and Services Tax - GSTR-2B"],
    ["Financial Year", "2024-25"],
    ["Tax Period", "April"],
    ["Taxable inward supplies received from registered persons"],
    ["GSTIN of supplier", "Trade/Legal name", "Invoice Details"],
    ["GSTIN of supplier", "Trade/Legal name", "Invoice number", "Invoice type", "Invoice Date"],
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    # The handler binds sys.stdout at setup; rebuild it for each test's capture
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
company: Acme Traders
store:
  backend: json
  path: ./store/processed.json
export_directory: ./exports
ledger_names_file: ./config/ledger_names.yml
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ledger.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    (temp_workdir / "config" / "ledger_names.yml").write_text(
        "- Purchase GST 18%\n- Purchase IGST 18%\n- Office Expenses\n- Freight Inward\n",
        encoding="utf-8",
    )
    return cfg


@pytest.fixture(scope="session")
def state_codes() -> dict[str, str]:
    return load_state_codes()


@pytest.fixture()
def make_raw():
    """Factory for RawInvoiceRow with sensible identity fields."""
    counter = {"n": 0}

    def _make(**values: Any) -> RawInvoiceRow:
        counter["n"] += 1
        base: dict[str, Any] = {
            "gstin": "27AAACA1234A1Z5",
            "trade_name": "Acme Supplies",
            "invoice_number": f"INV-{counter['n']}",
            "invoice_type": "Regular",
            "invoice_date": "05/04/2024",
            "place_of_supply": "Maharashtra",
        }
        base.update(values)
        return RawInvoiceRow(row_number=counter["n"], values=base)

    return _make


def invoice_line(**values: Any) -> list[Any]:
    """One B2B sheet line in column order, blanks for unspecified columns."""
    return [values.get(key) for key in HEADER_SEQUENCE]


def write_gstr2b_workbook(path: Path, lines: list[list[Any]], *, sheet_name: str = "B2B") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = pd.DataFrame(B2B_HEADER_BLOCK + lines)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["Read me"]]).to_excel(writer, sheet_name="Read me", header=False, index=False)
        frame.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def b2b_line():
    return invoice_line


@pytest.fixture()
def gstr2b_workbook():
    return write_gstr2b_workbook
