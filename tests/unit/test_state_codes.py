from __future__ import annotations

from pathlib import Path

import pytest

from gstr2b_ledger.config.loader import ConfigError
from gstr2b_ledger.config.state_codes import load_state_codes


def test_bundled_table():
    codes = load_state_codes()
    assert codes["27"] == "Maharashtra"
    assert codes["07"] == "Delhi"
    assert codes["33"] == "Tamil Nadu"
    assert all(len(code) == 2 for code in codes)


def test_custom_table_codes_are_zero_padded(tmp_path: Path):
    path = tmp_path / "codes.yml"
    path.write_text("7: Delhi\n'27': Maharashtra\n", encoding="utf-8")
    assert load_state_codes(path) == {"07": "Delhi", "27": "Maharashtra"}


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_state_codes(tmp_path / "missing.yml")


def test_non_mapping(tmp_path: Path):
    path = tmp_path / "codes.yml"
    path.write_text("- Delhi\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_state_codes(path)
