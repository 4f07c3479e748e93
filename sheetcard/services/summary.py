from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for a run.

    Format:
    SUMMARY sources={n} success={s} failed={f} contacts={c} skipped_rows={k} elapsed_sec={e}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_sources=1, failed_sources=0, total_contacts=12,
        ...     skipped_rows=1, start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY sources=1 success=1 failed=0 contacts=12 skipped_rows=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY sources={result.total_sources} "
        f"success={result.success_sources} "
        f"failed={result.failed_sources} "
        f"contacts={result.total_contacts} "
        f"skipped_rows={result.skipped_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
