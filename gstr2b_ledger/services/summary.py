from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering.

Format:
SUMMARY imports={n}/{n} success={s} failed={f} matched={m} mismatched={x}
reverse_charge={r} elapsed_sec={e} throughput_rps={t}
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        # Avoid scientific notation for very small durations
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(total_imports: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 4, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 4, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_imports=1, failed_imports=0, matched_rows=90,
        ...     mismatched_rows=10, reverse_charge_rows=0, start_time=start,
        ...     end_time=end, elapsed_seconds=2.0, throughput_rows_per_sec=50.0,
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY imports=1/1 success=1 failed=0 matched=90 mismatched=10 reverse_charge=0 elapsed_sec=2 throughput_rps=50'
    """
    return (
        f"SUMMARY imports={total_imports}/{total_imports} "
        f"success={result.success_imports} "
        f"failed={result.failed_imports} "
        f"matched={result.matched_rows} "
        f"mismatched={result.mismatched_rows} "
        f"reverse_charge={result.reverse_charge_rows} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
