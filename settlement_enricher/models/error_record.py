from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the row error log.

One record per data row whose lookup failed. Records are written as JSON Lines
by settlement_enricher.logging.error_log.ErrorLogBuffer with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
    "STORE_LOOKUP_ERROR",
    "PAYLOAD_DECODE_ERROR",
]

STORE_LOOKUP_ERROR = "STORE_LOOKUP_ERROR"
PAYLOAD_DECODE_ERROR = "PAYLOAD_DECODE_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Report file name being processed
        row: 1-based row number among the parsed rows
        transfer_id: Transfer ID of the failing row
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error description from the store client or decoder
    """
    timestamp: str
    file: str
    row: int
    transfer_id: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, transfer_id: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            transfer_id=transfer_id,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
