from __future__ import annotations

from pathlib import Path

import yaml

from .loader import ConfigError

"""State-code lookup table loader.

The table maps the two-character state code that prefixes every GSTIN to the
state name. It is loaded once, completely, before any transformation and is
then passed to ``transform`` explicitly.
"""

__all__ = [
    "DEFAULT_STATE_CODES_PATH",
    "load_state_codes",
]

DEFAULT_STATE_CODES_PATH = Path(__file__).parent / "state_codes.yml"


def load_state_codes(path: Path | None = None) -> dict[str, str]:
    """Load a state-code table from YAML (bundled table when ``path`` is None).

    Codes are zero-padded to two characters so ``1`` and ``"01"`` agree.

    Raises:
        ConfigError: If the file is missing, not YAML, or not a mapping
    """
    source = Path(path) if path is not None else DEFAULT_STATE_CODES_PATH
    if not source.exists():
        raise ConfigError(f"state code table not found: {source}")
    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in state code table: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"state code table must be a mapping: {source}")

    table: dict[str, str] = {}
    for code, name in data.items():
        if name is None:
            continue
        table[str(code).strip().zfill(2)] = str(name).strip()
    return table
