from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import yaml

from ..config.loader import ConfigError

"""Directory of reusable ledger names offered as suggestions while editing."""

__all__ = [
    "LedgerNameDirectory",
]


class LedgerNameDirectory:
    def __init__(self, names: Iterable[str] = ()) -> None:
        seen: set[str] = set()
        self._names: list[str] = []
        for name in names:
            cleaned = str(name).strip()
            if cleaned and cleaned.casefold() not in seen:
                seen.add(cleaned.casefold())
                self._names.append(cleaned)

    @classmethod
    def from_file(cls, path: Path) -> LedgerNameDirectory:
        """Load a YAML list of names (or a mapping with a ``ledger_names`` list)."""
        if not path.exists():
            raise ConfigError(f"ledger names file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid yaml: {e}") from e
        if isinstance(data, dict):
            data = data.get("ledger_names") or []
        if not isinstance(data, list):
            raise ConfigError(f"ledger names file must hold a list: {path}")
        return cls(data)

    def names(self) -> list[str]:
        return list(self._names)

    def suggest(self, prefix: str, limit: int = 10) -> list[str]:
        """Prefix matches first, then substring matches; case-insensitive."""
        needle = prefix.strip().casefold()
        if not needle:
            return self._names[:limit]
        starts = [n for n in self._names if n.casefold().startswith(needle)]
        contains = [n for n in self._names if needle in n.casefold() and n not in starts]
        return (starts + contains)[:limit]
