from __future__ import annotations

from pathlib import Path

from settlement_enricher.models.report_row import DataRow, HeaderRow, ReportTable

"""Enriched report serialization.

Output layout:
- line 1: every column name, each wrapped in double quotes
- section header rows: the raw label on its own line, not escaped
- data rows: values quoted only when they contain a comma, a double quote or
  a newline (embedded quotes doubled)

Lines are joined with "\\n" and there is no trailing newline.
"""

__all__ = [
    "output_columns",
    "quote_field",
    "render_report",
    "write_report",
]

_NEEDS_QUOTING = (",", '"', "\n")


def quote_field(value: str) -> str:
    if any(ch in value for ch in _NEEDS_QUOTING):
        return '"' + value.replace('"', '""') + '"'
    return value


def output_columns(table: ReportTable) -> list[str]:
    """Column order of the output, taken from the first data row."""
    data_rows = table.data_rows
    if not data_rows:
        return list(table.columns)
    return list(data_rows[0].enriched_values().keys())


def render_report(table: ReportTable) -> str:
    columns = output_columns(table)
    lines = [",".join(f'"{table.column_label(name)}"' for name in columns)]
    for row in table.rows:
        if isinstance(row, HeaderRow):
            lines.append(row.label)
        elif isinstance(row, DataRow):
            values = row.enriched_values()
            lines.append(",".join(quote_field(values.get(col) or "") for col in columns))
    return "\n".join(lines)


def write_report(table: ReportTable, path: Path) -> Path:
    """Render the table and write it to `path` (parent directories created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(table), encoding="utf-8", newline="")
    return path
