from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol

from ..db.document_store import DocumentStore
from ..excel.reader import ImportSourceError, SheetHeaderError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import AppConfig
from ..models.import_run import ImportRun, ImportStatus
from ..models.processing_result import ImportStat, ProcessingResult
from ..models.raw_invoice import RawInvoiceRow
from .progress import ProgressTracker
from .row_mapper import find_malformed_amounts
from .transformer import transform

"""Batch processing of GSTR-2B imports.

Each import is fetched, transformed and stored independently: a failing
import is recorded in the error log and the run moves on to the next one.
"""

__all__ = [
    "ImportSource",
    "ProcessingError",
    "process_imports",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal error that prevents the run from starting."""


class ImportSource(Protocol):
    def list_imports(self) -> list[str]: ...

    def fetch(self, import_id: str) -> list[RawInvoiceRow]: ...


def _record_malformed_cells(
    import_id: str, raw_rows: list[RawInvoiceRow], error_log: ErrorLogBuffer
) -> int:
    count = 0
    for raw in raw_rows:
        for field, value in find_malformed_amounts(raw):
            count += 1
            logger.warning(
                "non-numeric amount treated as 0 import=%s row=%s field=%s value=%r",
                import_id,
                raw.row_number,
                field,
                value,
            )
            if raw.raw_values is not None:
                logger.debug("import=%s row=%s cells=%r", import_id, raw.row_number, raw.raw_values)
            error_log.append(
                ErrorRecord.create(
                    import_id=import_id,
                    row=raw.row_number,
                    error_type="MALFORMED_AMOUNT",
                    message=f"{field}: non-numeric value {value!r} treated as 0",
                )
            )
    return count


def _process_single_import(
    import_id: str,
    config: AppConfig,
    source: ImportSource,
    store: DocumentStore,
    state_codes: dict[str, str],
    error_log: ErrorLogBuffer,
) -> ImportRun:
    run = ImportRun(import_id=import_id, start_time=datetime.now(UTC), status=ImportStatus.PROCESSING)
    try:
        raw_rows = source.fetch(import_id)
        malformed = _record_malformed_cells(import_id, raw_rows, error_log)
        document = transform(
            raw_rows,
            state_codes,
            import_id=import_id,
            company=config.company,
            separate_reverse_charge=config.separate_reverse_charge,
        )
        store.replace(import_id, document)
    except (SheetHeaderError, ImportSourceError) as e:
        error_type = "SHEET_NOT_FOUND" if isinstance(e, SheetHeaderError) else "IMPORT_NOT_FOUND"
        logger.error("import=%s %s", import_id, e)
        error_log.append(ErrorRecord.create(import_id, -1, error_type, str(e)))
        return replace(run, end_time=datetime.now(UTC), status=ImportStatus.FAILED, error=str(e))
    except Exception as e:
        logger.error("import=%s failed: %s", import_id, e)
        error_log.append(ErrorRecord.create(import_id, -1, "IMPORT_FAILED", str(e)))
        return replace(run, end_time=datetime.now(UTC), status=ImportStatus.FAILED, error=str(e))

    logger.info(
        "import=%s matched=%d mismatched=%d reverse_charge=%d",
        import_id,
        len(document.processed_rows),
        len(document.mismatched_rows),
        len(document.reverse_charge_rows),
    )
    return replace(
        run,
        end_time=datetime.now(UTC),
        status=ImportStatus.SUCCESS,
        matched_rows=len(document.processed_rows),
        mismatched_rows=len(document.mismatched_rows),
        reverse_charge_rows=len(document.reverse_charge_rows),
        malformed_cells=malformed,
    )


def process_imports(
    config: AppConfig,
    source: ImportSource,
    store: DocumentStore,
    state_codes: dict[str, str],
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Transform and store every import the source offers.

    Args:
        config: Application configuration
        source: Provider of import identifiers and their raw rows
        store: Destination for processed documents
        state_codes: State-code lookup table
        error_log: Error buffer (a fresh one writing to ./logs by default)

    Returns:
        ProcessingResult with aggregated counts and per-import stats

    Raises:
        ProcessingError: The source cannot list its imports
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    try:
        import_ids = source.list_imports()
    except ImportSourceError as e:
        raise ProcessingError(str(e)) from e

    stats: list[ImportStat] = []
    success = failed = matched = mismatched = reverse_charge = 0

    with ProgressTracker(len(import_ids)) as progress:
        for import_id in import_ids:
            progress.start_import(import_id)
            run = _process_single_import(import_id, config, source, store, state_codes, error_log)
            if run.status is ImportStatus.SUCCESS:
                success += 1
                matched += run.matched_rows
                mismatched += run.mismatched_rows
                reverse_charge += run.reverse_charge_rows
            else:
                failed += 1
            progress.set_postfix(success=success, failed=failed)
            progress.finish_import()

            elapsed = 0.0
            if run.start_time is not None and run.end_time is not None:
                elapsed = (run.end_time - run.start_time).total_seconds()
            stats.append(
                ImportStat(
                    import_id=import_id,
                    status=run.status.value,
                    matched_rows=run.matched_rows,
                    mismatched_rows=run.mismatched_rows,
                    reverse_charge_rows=run.reverse_charge_rows,
                    elapsed_seconds=elapsed,
                )
            )

    try:
        error_log.flush()
    except OSError as e:
        logger.error("could not write error log: %s", e)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    total_rows = matched + mismatched + reverse_charge
    throughput = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_imports=success,
        failed_imports=failed,
        matched_rows=matched,
        mismatched_rows=mismatched,
        reverse_charge_rows=reverse_charge,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput,
        import_stats=stats,
    )
