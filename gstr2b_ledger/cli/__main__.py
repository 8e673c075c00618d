from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from gstr2b_ledger.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from gstr2b_ledger.config.state_codes import load_state_codes
from gstr2b_ledger.db.document_store import (
    DocumentNotFoundError,
    DocumentStore,
    JsonFileDocumentStore,
    PostgresDocumentStore,
    StoreError,
)
from gstr2b_ledger.excel.reader import ExcelImportSource
from gstr2b_ledger.logging.init import log_summary, setup_logging
from gstr2b_ledger.models.config_models import AppConfig
from gstr2b_ledger.models.processed_document import RowCollection
from gstr2b_ledger.services.edit_buffer import LedgerNameEditBuffer
from gstr2b_ledger.services.export import export_document
from gstr2b_ledger.services.ledger_directory import LedgerNameDirectory
from gstr2b_ledger.services.orchestrator import ProcessingError, process_imports
from gstr2b_ledger.services.persistence import (
    CommitInProgressError,
    LedgerNamePersistenceProtocol,
    StaleChangesetError,
)
from gstr2b_ledger.services.summary import render_summary_line

"""CLI entrypoint.

    python -m gstr2b_ledger.cli [--config PATH] [--debug] <command>

Commands: process, export, set-ledger-name, suggest.
Exit codes: 0 success, 1 fatal, 2 partial failure.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

COLLECTION_CHOICES = {
    "processed": RowCollection.PROCESSED,
    "mismatched": RowCollection.MISMATCHED,
    "reverse-charge": RowCollection.REVERSE_CHARGE,
}


def _resolve_dsn(cfg: AppConfig) -> str:
    """Connection string; DATABASE_URL/PGDSN, then PG* variables, then config."""
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: AppConfig) -> Iterator[object]:  # pragma: no cover (needs a live server)
    """psycopg2 cursor with autocommit off; the store issues BEGIN/COMMIT itself."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = False
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


@contextmanager
def _open_store(cfg: AppConfig) -> Iterator[DocumentStore]:
    if cfg.store.backend == "postgres":
        with _db_connection(cfg) as cur:
            store = PostgresDocumentStore(cur, cfg.store.table)
            store.ensure_schema()
            yield store
    else:
        yield JsonFileDocumentStore(Path(cfg.store.path))


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its connection settings take precedence over the shell's."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_set_pairs(pairs: list[str]) -> list[tuple[str, str]]:
    parsed: list[tuple[str, str]] = []
    for pair in pairs:
        key, sep, name = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected KEY=NAME, got {pair!r}")
        parsed.append((key.strip(), name))
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gstr2b_ledger", description="GSTR-2B -> purchase ledger importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("process", help="Transform every import in source_directory and store the results")

    exp = sub.add_parser("export", help="Write export workbooks for a stored import")
    exp.add_argument("--import-id", required=True)
    exp.add_argument("--output", type=Path, default=None, help="Output directory (default: export_directory)")

    led = sub.add_parser("set-ledger-name", help="Edit ledger names of a stored import")
    led.add_argument("--import-id", required=True)
    led.add_argument("--set", dest="pairs", action="append", required=True, metavar="KEY=NAME")
    led.add_argument("--collection", choices=sorted(COLLECTION_CHOICES), default="processed")

    sug = sub.add_parser("suggest", help="List ledger-name suggestions")
    sug.add_argument("prefix")
    sug.add_argument("--limit", type=int, default=10)
    return p


def _run_process(cfg: AppConfig, logger: logging.Logger) -> int:
    state_codes = load_state_codes(Path(cfg.state_codes_file) if cfg.state_codes_file else None)
    source = ExcelImportSource(Path(cfg.source_directory))
    logger.info("Processing imports from: %s", cfg.source_directory)
    with _open_store(cfg) as store:
        result = process_imports(cfg, source, store, state_codes)

    total_imports = result.success_imports + result.failed_imports
    summary_line = render_summary_line(total_imports, result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_imports > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_export(cfg: AppConfig, import_id: str, output: Path | None) -> int:
    directory = output if output is not None else Path(cfg.export_directory)
    with _open_store(cfg) as store:
        document = store.get(import_id)
    paths = export_document(document, directory)
    for artifact, path in paths.items():
        print(f"{artifact}: {path}")
    return EXIT_SUCCESS_ALL


def _run_set_ledger_name(
    cfg: AppConfig, import_id: str, pairs: list[str], collection_name: str, logger: logging.Logger
) -> int:
    try:
        edits = _parse_set_pairs(pairs)
    except ValueError as e:
        logger.error("set-ledger-name: %s", e)
        return EXIT_FATAL
    collection = COLLECTION_CHOICES[collection_name]

    with _open_store(cfg) as store:
        protocol = LedgerNamePersistenceProtocol(store)
        document = protocol.fetch(import_id)
        buffer = LedgerNameEditBuffer(document.rows(collection), collection=collection)
        for key, name in edits:
            try:
                buffer.set_value(key, name)
            except KeyError:
                logger.error("set-ledger-name: no row with key %s in %s", key, collection.value)
                return EXIT_FATAL
        changed = len(buffer.changeset())
        try:
            buffer.commit(protocol, import_id)
        except (StaleChangesetError, CommitInProgressError) as e:
            logger.error("set-ledger-name: %s", e)
            return EXIT_FATAL

    if changed == 0:
        logger.info("import=%s no ledger names changed", import_id)
    return EXIT_SUCCESS_ALL


def _run_suggest(cfg: AppConfig, prefix: str, limit: int, logger: logging.Logger) -> int:
    if not cfg.ledger_names_file:
        logger.error("suggest: ledger_names_file is not configured")
        return EXIT_FATAL
    directory = LedgerNameDirectory.from_file(Path(cfg.ledger_names_file))
    for name in directory.suggest(prefix, limit=limit):
        print(name)
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # Only read sys.argv when no argument list was given; [] must stay empty
    if argv is None:
        argv = sys.argv[1:]
    args = _build_parser().parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    try:
        if args.command == "process":
            return _run_process(cfg, logger)
        if args.command == "export":
            return _run_export(cfg, args.import_id, args.output)
        if args.command == "set-ledger-name":
            return _run_set_ledger_name(cfg, args.import_id, args.pairs, args.collection, logger)
        return _run_suggest(cfg, args.prefix, args.limit, logger)
    except DocumentNotFoundError as e:
        logger.error("%s", e)
        return EXIT_FATAL
    except (ConfigError, ProcessingError, StoreError) as e:
        logger.error("%s: %s", args.command, e)
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error("database: %s", e)
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
