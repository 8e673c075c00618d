from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..models.ledger_row import EXPORT_COLUMNS, CanonicalLedgerRow
from ..models.processed_document import ProcessedDocument

"""Spreadsheet export of processed documents.

Artifacts:
- full: processed + mismatched + reverse-charge rows
- matched: processed rows
- mismatched: mismatched rows

Every artifact is built from the document passed in; nothing is cached
between exports.
"""

__all__ = [
    "ARTIFACTS",
    "EMPTY_SHEET_TEXT",
    "ExportError",
    "build_export_frame",
    "export_document",
]

logger = logging.getLogger(__name__)

ARTIFACTS = ("full", "matched", "mismatched")
EMPTY_SHEET_TEXT = "No data available"
SHEET_NAME = "Ledger"


class ExportError(Exception):
    pass


def _artifact_rows(document: ProcessedDocument, artifact: str) -> list[CanonicalLedgerRow]:
    if artifact == "full":
        return [*document.processed_rows, *document.mismatched_rows, *document.reverse_charge_rows]
    if artifact == "matched":
        return list(document.processed_rows)
    if artifact == "mismatched":
        return list(document.mismatched_rows)
    raise ExportError(f"unknown export artifact: {artifact}")


def build_export_frame(rows: Iterable[CanonicalLedgerRow]) -> pd.DataFrame:
    """DataFrame with the export columns in order; a one-cell notice when empty."""
    records = [r.to_export_record() for r in rows]
    if not records:
        return pd.DataFrame([[EMPTY_SHEET_TEXT]])
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


def export_document(
    document: ProcessedDocument,
    directory: Path,
    artifacts: Iterable[str] = ARTIFACTS,
) -> dict[str, Path]:
    """Write one ``<import_id>-<artifact>.xlsx`` workbook per artifact.

    Returns:
        artifact name -> written path
    """
    directory.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    for artifact in artifacts:
        frame = build_export_frame(_artifact_rows(document, artifact))
        path = directory / f"{document.import_id}-{artifact}.xlsx"
        # The empty notice has no meaningful header row
        with_header = list(frame.columns) == EXPORT_COLUMNS
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name=SHEET_NAME, index=False, header=with_header)
        logger.info("exported import=%s artifact=%s path=%s", document.import_id, artifact, path)
        written[artifact] = path
    return written
