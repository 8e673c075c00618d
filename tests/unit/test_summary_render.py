from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gstr2b_ledger.models.processing_result import ProcessingResult
from gstr2b_ledger.services.summary import _format_number, render_summary_line

START = datetime(2024, 4, 1, 10, 0, 0, tzinfo=UTC)


def _result(**overrides) -> ProcessingResult:
    values = dict(
        success_imports=2,
        failed_imports=1,
        matched_rows=90,
        mismatched_rows=8,
        reverse_charge_rows=2,
        start_time=START,
        end_time=START,
        elapsed_seconds=1.5,
        throughput_rows_per_sec=66.6667,
    )
    values.update(overrides)
    return ProcessingResult(**values)


def test_render_summary_line():
    assert render_summary_line(3, _result()) == (
        "SUMMARY imports=3/3 success=2 failed=1 matched=90 mismatched=8 "
        "reverse_charge=2 elapsed_sec=1.5 throughput_rps=66.667"
    )


def test_empty_run():
    line = render_summary_line(
        0,
        _result(
            success_imports=0,
            failed_imports=0,
            matched_rows=0,
            mismatched_rows=0,
            reverse_charge_rows=0,
            elapsed_seconds=0.0,
            throughput_rows_per_sec=0.0,
        ),
    )
    assert line == (
        "SUMMARY imports=0/0 success=0 failed=0 matched=0 mismatched=0 "
        "reverse_charge=0 elapsed_sec=0 throughput_rps=0"
    )


@pytest.mark.parametrize(
    "value,expected",
    [(0, "0"), (2.0, "2"), (0.0012, "0.0012"), (0.25, "0.25"), (12.3456, "12.346")],
)
def test_format_number(value, expected):
    assert _format_number(value) == expected


def test_total_rows():
    assert _result().total_rows == 100
