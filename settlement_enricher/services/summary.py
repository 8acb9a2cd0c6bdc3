from __future__ import annotations

from ..models.run_statistics import RunStatistics

"""SUMMARY line rendering.

Format:
SUMMARY rows={total} processed={processed} found={found} not_found={not_found}
errors={errors} section_headers={headers} elapsed_sec={elapsed}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for very small values
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_line(stats: RunStatistics) -> str:
    """Render the SUMMARY line for a finished run.

    Examples:
        >>> stats = RunStatistics(
        ...     total_rows=3, processed=3, found=2, not_found=1, errors=0,
        ...     section_headers=1, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(stats)
        'SUMMARY rows=3 processed=3 found=2 not_found=1 errors=0 section_headers=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={stats.total_rows} "
        f"processed={stats.processed} "
        f"found={stats.found} "
        f"not_found={stats.not_found} "
        f"errors={stats.errors} "
        f"section_headers={stats.section_headers} "
        f"elapsed_sec={_format_seconds(stats.elapsed_seconds)}"
    )
