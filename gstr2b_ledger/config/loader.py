from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import AppConfig, DatabaseConfig, StoreConfig

"""Config loader.

Responsibilities:
- Load YAML config (config/ledger.yml by default)
- Validate against the bundled JSON schema
- Apply defaults for optional keys
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/ledger.yml")

DEFAULT_STORE_PATH = "./store/processed.json"
DEFAULT_STORE_TABLE = "processed_documents"
DEFAULT_EXPORT_DIRECTORY = "./exports"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config fails validation (missing required keys, wrong types,
            unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    store_raw = data.get("store") or {}
    store = StoreConfig(
        backend=store_raw.get("backend", "json"),
        path=store_raw.get("path", DEFAULT_STORE_PATH),
        table=store_raw.get("table", DEFAULT_STORE_TABLE),
    )
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return AppConfig(
        source_directory=data["source_directory"],
        company=data.get("company") or "Unknown",
        store=store,
        database=db,
        export_directory=data.get("export_directory", DEFAULT_EXPORT_DIRECTORY),
        state_codes_file=data.get("state_codes_file"),
        ledger_names_file=data.get("ledger_names_file"),
        separate_reverse_charge=bool(data.get("separate_reverse_charge", False)),
    )
