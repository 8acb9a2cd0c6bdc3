from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import DEFAULT_KEY_PREFIX
from ..models.error_record import PAYLOAD_DECODE_ERROR, STORE_LOOKUP_ERROR, ErrorRecord
from ..models.progress_event import ProgressEvent, RunStatus
from ..models.report_row import DataRow, EnrichmentOutcome, OutcomeKind
from ..models.run_statistics import RunStatistics, StatisticsAccumulator
from ..store.kv_client import KeyValueClient
from .progress import ProgressReporter, RowProgressTracker, null_progress

"""Row enrichment.

For every data row, in file order, the transfer id is resolved to a home
transaction id:

1. blank transfer id -> NOT_FOUND, the store is not queried
2. GET <prefix>_in_<id>; when absent, GET <prefix>_out_<id>
3. the first hit is decoded as JSON; its `homeTransactionId` is the result,
   a payload without one counts as NOT_FOUND
4. any exception from the store or the decoder -> ERROR for that row only

Lookups are strictly sequential; statistics and progress percentages depend on
rows completing in order.
"""

__all__ = [
    "HOME_TRANSACTION_ID_FIELD",
    "lookup_keys",
    "resolve_home_transaction_id",
    "EnrichmentEngine",
]

logger = logging.getLogger(__name__)

HOME_TRANSACTION_ID_FIELD = "homeTransactionId"


def lookup_keys(transfer_id: str, key_prefix: str = DEFAULT_KEY_PREFIX) -> tuple[str, str]:
    """Store keys tried for a transfer id, in priority order."""
    return (f"{key_prefix}_in_{transfer_id}", f"{key_prefix}_out_{transfer_id}")


def resolve_home_transaction_id(
    client: KeyValueClient,
    transfer_id: str | None,
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> EnrichmentOutcome:
    if not transfer_id or not transfer_id.strip():
        return EnrichmentOutcome.not_found()

    data: str | None = None
    try:
        for key in lookup_keys(transfer_id, key_prefix):
            data = client.get(key)
            if data:
                break
    except Exception as e:
        return EnrichmentOutcome.error(f"lookup failed: {e}", STORE_LOOKUP_ERROR)

    if not data:
        return EnrichmentOutcome.not_found()

    try:
        payload = json.loads(data)
    except (ValueError, TypeError) as e:
        return EnrichmentOutcome.error(f"invalid payload: {e}", PAYLOAD_DECODE_ERROR)

    if not isinstance(payload, dict):
        return EnrichmentOutcome.not_found()
    home_id = payload.get(HOME_TRANSACTION_ID_FIELD)
    if not home_id:
        return EnrichmentOutcome.not_found()
    return EnrichmentOutcome.found(_render_identifier(home_id))


def _render_identifier(value: object) -> str:
    """Text form of a JSON identifier: strings as is, other values as JSON (`true`, `123`)."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value, ensure_ascii=False)


class EnrichmentEngine:
    """Annotates data rows in place and accumulates RunStatistics."""

    def __init__(
        self,
        client: KeyValueClient,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        progress_interval: int = 10,
        reporter: ProgressReporter | None = None,
        error_log: ErrorLogBuffer | None = None,
        file_name: str = "<report>",
    ) -> None:
        if progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")
        self.client = client
        self.key_prefix = key_prefix
        self.progress_interval = progress_interval
        self.reporter = reporter or null_progress
        self.error_log = error_log
        self.file_name = file_name

    def enrich(self, rows: Sequence[DataRow], *, section_headers: int = 0) -> RunStatistics:
        stats = StatisticsAccumulator(total_rows=len(rows), section_headers=section_headers)
        last = len(rows) - 1

        with RowProgressTracker(len(rows)) as tracker:
            for i, row in enumerate(rows):
                outcome = resolve_home_transaction_id(self.client, row.transfer_id, self.key_prefix)
                row.outcome = outcome
                stats.record(outcome)

                if outcome.kind is OutcomeKind.ERROR:
                    self._record_error(row, outcome)

                tracker.advance(found=stats.found, not_found=stats.not_found, errors=stats.errors)

                if i % self.progress_interval == 0 or i == last:
                    self.reporter(
                        ProgressEvent(
                            status=RunStatus.PROCESSING,
                            message=f"Processed {stats.processed}/{stats.total_rows} rows",
                            progress=stats.percent,
                        )
                    )

        return stats.freeze()

    def _record_error(self, row: DataRow, outcome: EnrichmentOutcome) -> None:
        logger.error(
            "row %d transfer_id=%s: %s", row.row_number, row.transfer_id, outcome.reason
        )
        if self.error_log is not None:
            self.error_log.append(
                ErrorRecord.create(
                    file=self.file_name,
                    row=row.row_number,
                    transfer_id=row.transfer_id,
                    error_type=outcome.error_type or STORE_LOOKUP_ERROR,
                    message=outcome.reason or "",
                )
            )
