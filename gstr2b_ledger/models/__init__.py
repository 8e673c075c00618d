"""Domain models for the GSTR-2B ledger importer."""

from .config_models import AppConfig, DatabaseConfig, StoreConfig
from .error_record import ErrorRecord
from .import_run import ImportRun, ImportStatus
from .ledger_row import CanonicalLedgerRow, EXPORT_COLUMNS, Slab, SlabLedgerEntry, TaxMode
from .processed_document import ProcessedDocument, RowCollection
from .raw_invoice import RawInvoiceRow

__all__ = [
    # Configuration models
    "AppConfig",
    "DatabaseConfig",
    "StoreConfig",
    # Row models
    "RawInvoiceRow",
    "CanonicalLedgerRow",
    "SlabLedgerEntry",
    "Slab",
    "TaxMode",
    "EXPORT_COLUMNS",
    # Documents
    "ProcessedDocument",
    "RowCollection",
    # Processing models
    "ErrorRecord",
    "ImportRun",
    "ImportStatus",
]
