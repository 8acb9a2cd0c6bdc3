from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from settlement_enricher.errors import EnrichmentSetupError, ErrorKind
from settlement_enricher.models.report_row import (
    TRANSFER_ID_COLUMN,
    DataRow,
    HeaderRow,
    ReportRow,
    ReportTable,
)

"""Settlement report reader.

The first physical line is the column header. Every following line is either
a section header (label in the first column, everything else blank) or a data
row. Values are kept as strings exactly as they appear in the file; short rows
are padded with empty strings, rows longer than the header are a read failure.
"""

__all__ = [
    "RawReport",
    "ValidationResult",
    "read_report_csv",
    "parse_report_text",
    "classify_rows",
    "validate_data_rows",
    "load_report",
]


@dataclass
class RawReport:
    columns: list[str]  # unique keys, one per header cell
    records: list[dict[str, str]]  # column key -> raw string value
    labels: list[str] = field(default_factory=list)  # header cells as written


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _unique_columns(labels: Sequence[str]) -> list[str]:
    """Record keys for the header cells.

    A repeated header cell keeps its text as label but gets the key
    `<label> (<n>)`, n being its 1-based position in the header.
    """
    columns: list[str] = []
    seen: set[str] = set()
    for pos, label in enumerate(labels, start=1):
        key = label
        while key in seen:
            key = f"{key} ({pos})"
        seen.add(key)
        columns.append(key)
    return columns


def _frame_to_report(df: pd.DataFrame) -> RawReport:
    lines = [
        ["" if pd.isna(val) else str(val) for val in raw]
        for raw in df.itertuples(index=False, name=None)
    ]
    labels = lines[0]
    columns = _unique_columns(labels)
    records = [dict(zip(columns, values, strict=True)) for values in lines[1:]]
    return RawReport(columns=columns, records=records, labels=labels)


def _read_frame(source: Any, label: str) -> pd.DataFrame:
    # header=None: the header line is read as data so pandas neither renames
    # blank/repeated names nor drops fields beyond the header width
    try:
        return pd.read_csv(
            source,
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise EnrichmentSetupError(ErrorKind.READ_FAILED, f"CSV file is empty: {label}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise EnrichmentSetupError(ErrorKind.READ_FAILED, f"failed to parse CSV {label}: {e}") from e


def read_report_csv(path: Path) -> RawReport:
    """Read a settlement report CSV file, all values as strings."""
    if not path.is_file():
        raise EnrichmentSetupError(ErrorKind.READ_FAILED, f"report not found: {path}")
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            return _frame_to_report(_read_frame(f, path.name))
    except OSError as e:
        raise EnrichmentSetupError(ErrorKind.READ_FAILED, f"cannot read report {path}: {e}") from e


def parse_report_text(text: str) -> RawReport:
    """Same as read_report_csv for CSV text already in memory."""
    return _frame_to_report(_read_frame(io.StringIO(text), "<text>"))


def classify_rows(columns: Sequence[str], records: Sequence[dict[str, str]]) -> list[ReportRow]:
    """Tag each record as a HeaderRow or a DataRow, keeping the original order.

    A record is a section header iff its first column is non-empty and every
    other column is empty or whitespace only.
    """
    if not columns:
        return []
    first_col, other_cols = columns[0], columns[1:]
    rows: list[ReportRow] = []
    for idx, record in enumerate(records, start=1):
        first_value = record.get(first_col) or ""
        is_header = bool(first_value) and all(
            not (record.get(c) or "").strip() for c in other_cols
        )
        if is_header:
            rows.append(HeaderRow(row_number=idx, label=first_value, values=dict(record)))
        else:
            rows.append(DataRow(row_number=idx, values=dict(record)))
    return rows


def validate_data_rows(rows: Sequence[DataRow]) -> ValidationResult:
    """Check the data rows carry a Transfer ID column.

    Empty Transfer ID values are reported as warnings only; those rows are
    still processed (and end up NOT_FOUND).
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not rows:
        errors.append("CSV file is empty")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    if TRANSFER_ID_COLUMN not in rows[0].values:
        errors.append(f'Missing required column: "{TRANSFER_ID_COLUMN}"')

    empty = sum(1 for r in rows if not (r.values.get(TRANSFER_ID_COLUMN) or "").strip())
    if empty > 0:
        warnings.append(f"Found {empty} rows with empty Transfer IDs")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def load_report(path: Path) -> ReportTable:
    """Read and classify a report file."""
    raw = read_report_csv(path)
    return ReportTable(
        columns=raw.columns,
        rows=classify_rows(raw.columns, raw.records),
        labels=raw.labels,
    )
