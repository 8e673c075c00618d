"""GSTR-2B purchase ledger importer."""

__version__ = "0.1.0"
