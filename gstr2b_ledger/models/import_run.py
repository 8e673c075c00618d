from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""ImportRun domain model and ImportStatus enum.

An ImportRun is the processing context of a single GSTR-2B import during a
batch run, tracking it from pending to success/failed together with the
partition sizes of the document it produced.
"""


class ImportStatus(Enum):
    """Status of one import during a batch run.

    State transitions: pending → processing → (success | failed)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportRun:
    """Processing context and outcome for a single import."""
    import_id: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: ImportStatus = ImportStatus.PENDING
    matched_rows: int = 0
    mismatched_rows: int = 0
    reverse_charge_rows: int = 0
    malformed_cells: int = 0  # Amount cells parsed as zero
    error: str | None = None

    @property
    def total_rows(self) -> int:
        return self.matched_rows + self.mismatched_rows + self.reverse_charge_rows
