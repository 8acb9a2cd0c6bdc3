from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

"""Row models for a parsed settlement report.

A report interleaves two kinds of rows:

- section headers: a grouping label (e.g. a currency code) in the first
  column and nothing else;
- data rows: one settlement transfer each.

They are modelled as two separate dataclasses rather than one row type with a
flag, so a header row can never be enriched and a data row never loses fields.
"""

__all__ = [
    "TRANSFER_ID_COLUMN",
    "HOME_TRANSACTION_ID_COLUMN",
    "NOT_FOUND_SENTINEL",
    "ERROR_SENTINEL",
    "OutcomeKind",
    "EnrichmentOutcome",
    "HeaderRow",
    "DataRow",
    "ReportRow",
    "ReportTable",
]

TRANSFER_ID_COLUMN = "Transfer ID"
HOME_TRANSACTION_ID_COLUMN = "Home Transaction ID"
NOT_FOUND_SENTINEL = "NOT_FOUND"
ERROR_SENTINEL = "ERROR"


class OutcomeKind(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class EnrichmentOutcome:
    """Result of resolving one transfer id against the store."""
    kind: OutcomeKind
    value: str | None = None  # resolved home transaction id (FOUND only)
    reason: str | None = None  # failure description (ERROR only)
    error_type: str | None = None  # UPPER_SNAKE classification (ERROR only)

    @staticmethod
    def found(value: str) -> EnrichmentOutcome:
        return EnrichmentOutcome(kind=OutcomeKind.FOUND, value=value)

    @staticmethod
    def not_found() -> EnrichmentOutcome:
        return EnrichmentOutcome(kind=OutcomeKind.NOT_FOUND)

    @staticmethod
    def error(reason: str, error_type: str) -> EnrichmentOutcome:
        return EnrichmentOutcome(kind=OutcomeKind.ERROR, reason=reason, error_type=error_type)

    def render(self) -> str:
        """Value written to the Home Transaction ID column."""
        if self.kind is OutcomeKind.FOUND and self.value:
            return self.value
        if self.kind is OutcomeKind.ERROR:
            return ERROR_SENTINEL
        return NOT_FOUND_SENTINEL


@dataclass(frozen=True)
class HeaderRow:
    """Section header row. Only `label` is ever written back out."""
    row_number: int  # 1-based position among the parsed rows (file header excluded)
    label: str
    values: dict[str, str] = field(default_factory=dict)


@dataclass
class DataRow:
    """Settlement transfer row; `outcome` is filled in by the enrichment engine."""
    row_number: int
    values: dict[str, str]
    outcome: EnrichmentOutcome | None = None

    @property
    def transfer_id(self) -> str:
        return self.values.get(TRANSFER_ID_COLUMN) or ""

    def enriched_values(self) -> dict[str, str]:
        """Original values plus the Home Transaction ID column (if enriched)."""
        out = dict(self.values)
        if self.outcome is not None:
            out[HOME_TRANSACTION_ID_COLUMN] = self.outcome.render()
        return out


ReportRow = Union[HeaderRow, DataRow]


@dataclass
class ReportTable:
    """Parsed report: file columns plus every row in original order.

    `columns` are the record keys; `labels` holds the header cells as written
    in the file (same length as `columns`, empty when built by hand).
    """
    columns: list[str]
    rows: list[ReportRow]
    labels: list[str] = field(default_factory=list)

    def column_label(self, column: str) -> str:
        """Header text to emit for a record key."""
        if self.labels and column in self.columns:
            return self.labels[self.columns.index(column)]
        return column

    @property
    def data_rows(self) -> list[DataRow]:
        return [r for r in self.rows if isinstance(r, DataRow)]

    @property
    def header_rows(self) -> list[HeaderRow]:
        return [r for r in self.rows if isinstance(r, HeaderRow)]
