from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the GSTR-2B ledger importer.

Built by ``gstr2b_ledger.config.loader.load_config`` after schema validation
and defaulting; everything downstream works with these typed objects rather
than the raw YAML mapping.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class StoreConfig:
    """Where processed documents are persisted."""
    backend: str  # "json" | "postgres"
    path: str  # JSON store file (json backend)
    table: str  # Target table (postgres backend)


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    source_directory: str  # Directory holding <import_id>.xlsx extracts
    company: str
    store: StoreConfig
    database: DatabaseConfig
    export_directory: str
    state_codes_file: str | None = None  # None -> bundled table
    ledger_names_file: str | None = None
    separate_reverse_charge: bool = False
