from __future__ import annotations

from dataclasses import dataclass

from .report_row import EnrichmentOutcome, OutcomeKind

"""Run statistics for one enrichment run.

RunStatistics is the immutable result handed back to the caller.
StatisticsAccumulator is the mutable counter the enrichment engine updates row
by row; freeze() turns it into a RunStatistics once processing completes.
"""

__all__ = [
    "RunStatistics",
    "StatisticsAccumulator",
]


@dataclass(frozen=True)
class RunStatistics:
    """Counts for a finished run.

    Invariant after a successful run:
        processed == found + not_found + errors == total_rows
    """
    total_rows: int  # data rows only, section headers excluded
    processed: int
    found: int
    not_found: int
    errors: int
    section_headers: int = 0
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, int]:
        """Payload shape returned to upload clients."""
        return {
            "totalRows": self.total_rows,
            "processed": self.processed,
            "found": self.found,
            "notFound": self.not_found,
            "errors": self.errors,
        }


class StatisticsAccumulator:
    """Monotonic counters updated once per data row."""

    def __init__(self, total_rows: int, section_headers: int = 0) -> None:
        self.total_rows = total_rows
        self.section_headers = section_headers
        self.processed = 0
        self.found = 0
        self.not_found = 0
        self.errors = 0

    def record(self, outcome: EnrichmentOutcome) -> None:
        self.processed += 1
        if outcome.kind is OutcomeKind.FOUND:
            self.found += 1
        elif outcome.kind is OutcomeKind.ERROR:
            self.errors += 1
        else:
            self.not_found += 1

    @property
    def percent(self) -> int:
        """floor(processed / total * 100); 100 for an empty run."""
        if self.total_rows <= 0:
            return 100
        return (self.processed * 100) // self.total_rows

    def freeze(self, elapsed_seconds: float = 0.0) -> RunStatistics:
        return RunStatistics(
            total_rows=self.total_rows,
            processed=self.processed,
            found=self.found,
            not_found=self.not_found,
            errors=self.errors,
            section_headers=self.section_headers,
            elapsed_seconds=elapsed_seconds,
        )
