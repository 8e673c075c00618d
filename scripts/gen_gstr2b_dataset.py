#!/usr/bin/env python3
"""Synthetic GSTR-2B workbook generator for manual and performance runs.

Writes a workbook with a "B2B" sheet laid out like the portal download:
- Rows 1-6: title and two-level header block
- Row 7+: invoice lines in the statutory column order

Roughly half of the lines are inter-state (IGST), the rest intra-state
(CGST + SGST). A configurable share uses a tax rate outside the standard
slabs so the mismatched partition is exercised too.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

SLAB_RATES = [5, 12, 18, 28]
ODD_RATES = [3, 7, 40]

STATE_CODES = ["07", "09", "19", "24", "27", "29", "33", "36"]

HEADER_BLOCK: list[list[Any]] = [
    ["Goods and Services Tax - GSTR-2B"],
    ["Financial Year", "2024-25"],
    ["Taxable inward supplies received from registered persons"],
    ["Tax Period", "April"],
    [
        "GSTIN of supplier", "Trade/Legal name", "Invoice Details", None, None, None,
        "Place of supply", "Supply Attract Reverse Charge", "Taxable Value (₹)",
        "Tax Amount", None, None, None, "GSTR-1/1A/IFF/GSTR-5 Period",
        "GSTR-1/1A/IFF/GSTR-5 Filing Date", "ITC Availability", "Reason",
        "Applicable % of Tax Rate", "Source", "IRN", "IRN Date",
    ],
    [
        None, None, "Invoice number", "Invoice type", "Invoice Date", "Invoice Value(₹)",
        None, None, None, "Integrated Tax(₹)", "Central Tax(₹)", "State/UT Tax(₹)", "Cess(₹)",
    ],
]


def _gstin(rng: np.random.Generator, state: str) -> str:
    letters = "".join(rng.choice(list("ABCDEFGHIJKLMNOPQRSTUVWXYZ"), 5))
    digits = "".join(str(d) for d in rng.integers(0, 10, 4))
    return f"{state}{letters}{digits}A1Z{rng.integers(1, 10)}"


def generate_invoice_rows(
    rows: int, home_state: str = "27", mismatch_ratio: float = 0.1, seed: int = 42
) -> list[list[Any]]:
    """Generate invoice lines in the B2B column order.

    Args:
        rows: Number of invoice lines
        home_state: State code of the recipient; suppliers in the same state
            are billed CGST + SGST, others IGST
        mismatch_ratio: Share of lines using a non-standard tax rate
        seed: Random seed for reproducible data
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range("2024-04-01", "2024-04-30", periods=30)
    lines: list[list[Any]] = []
    for i in range(rows):
        state = str(rng.choice(STATE_CODES))
        odd = rng.random() < mismatch_ratio
        rate = int(rng.choice(ODD_RATES if odd else SLAB_RATES))
        taxable = float(np.round(rng.uniform(100, 250_000), 2))
        tax = float(np.round(taxable * rate / 100, 2))
        if state == home_state:
            igst, cgst, sgst = 0.0, round(tax / 2, 2), round(tax / 2, 2)
        else:
            igst, cgst, sgst = tax, 0.0, 0.0
        invoice_date = pd.Timestamp(rng.choice(dates)).to_pydatetime()
        lines.append([
            _gstin(rng, state),
            f"Supplier {i % 500 + 1} Pvt Ltd",
            f"INV/{24000 + i}",
            "Regular",
            invoice_date.strftime("%d/%m/%Y"),
            round(taxable + igst + cgst + sgst, 2),
            state,
            "Yes" if rng.random() < 0.02 else "No",
            taxable,
            igst,
            cgst,
            sgst,
            0,
            "Apr'24",
            "11/05/2024",
            "Yes",
            None,
            1,
            "e-Invoice",
            None,
            None,
        ])
    return lines


def create_workbook(output_path: Path, rows: int, mismatch_ratio: float, seed: int) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet = pd.DataFrame(HEADER_BLOCK + generate_invoice_rows(rows, mismatch_ratio=mismatch_ratio, seed=seed))
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame([["Read me"]]).to_excel(writer, sheet_name="Read me", header=False, index=False)
        sheet.to_excel(writer, sheet_name="B2B", header=False, index=False)
    print(f"Created GSTR-2B workbook: {output_path}")
    print(f"  Invoice lines: {rows:,} (+ {len(HEADER_BLOCK)} header rows)")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic GSTR-2B workbook")
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=5_000, help="Invoice lines (default: 5,000)")
    parser.add_argument("--mismatch-ratio", type=float, default=0.1, help="Share of non-slab rates (default: 0.1)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.mismatch_ratio <= 1:
        print("Error: --mismatch-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    create_workbook(args.output, args.rows, args.mismatch_ratio, args.seed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
