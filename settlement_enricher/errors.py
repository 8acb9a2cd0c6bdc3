from __future__ import annotations

from enum import Enum

"""Fatal setup errors.

Anything raised from here aborts a run before a single row is enriched and no
output file is written. Row-level lookup failures never use these; they become
ERROR outcomes on the row instead.
"""

__all__ = [
    "ErrorKind",
    "EnrichmentSetupError",
]


class ErrorKind(Enum):
    READ_FAILED = "read_failed"  # file missing, empty or not parseable as CSV
    SCHEMA_INVALID = "schema_invalid"  # no data rows / required column missing
    STORE_UNAVAILABLE = "store_unavailable"  # Redis connect failed


class EnrichmentSetupError(Exception):
    """Raised for setup-level failures that abort the whole run."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
