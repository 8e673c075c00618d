from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for a batch run.

ProcessingResult aggregates the per-import outcomes into the figures printed
on the SUMMARY line; ImportStat keeps the detail for each import.
"""


@dataclass(frozen=True)
class ImportStat:
    """Per-import processing statistics."""
    import_id: str
    status: str  # success/failed
    matched_rows: int
    mismatched_rows: int
    reverse_charge_rows: int
    elapsed_seconds: float


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of transforming every import in a run."""
    success_imports: int
    failed_imports: int
    matched_rows: int
    mismatched_rows: int
    reverse_charge_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # transformed rows / elapsed
    import_stats: list[ImportStat] | None = None

    @property
    def total_rows(self) -> int:
        return self.matched_rows + self.mismatched_rows + self.reverse_charge_rows
