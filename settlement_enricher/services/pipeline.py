from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import replace
from pathlib import Path

from ..errors import EnrichmentSetupError, ErrorKind
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import EnricherConfig, StoreConfig
from ..models.progress_event import ProgressEvent, RunStatus
from ..models.report_row import ReportTable
from ..models.run_statistics import RunStatistics
from ..report.reader import classify_rows, read_report_csv, validate_data_rows
from ..report.writer import write_report
from ..store.kv_client import KeyValueClient, open_kv_client
from .enrichment import EnrichmentEngine
from .progress import ProgressReporter, null_progress

"""Run orchestration.

One run = one report file:

    read -> classify -> validate -> connect -> enrich -> write -> complete

Setup failures (unreadable file, no data rows, missing Transfer ID column,
Redis unreachable) raise EnrichmentSetupError before any row is enriched and
nothing is written. Row-level lookup failures are absorbed by the engine.
"""

__all__ = [
    "ClientFactory",
    "EnrichmentPipeline",
    "default_output_path",
    "process_report",
]

logger = logging.getLogger(__name__)

ClientFactory = Callable[[StoreConfig], AbstractContextManager[KeyValueClient]]


def default_output_path(config: EnricherConfig, input_path: Path, now_ms: int | None = None) -> Path:
    """`<output_directory>/processed_<epoch ms>_<input file name>`."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return Path(config.output_directory) / f"processed_{now_ms}_{input_path.name}"


class EnrichmentPipeline:
    """Enrich settlement reports with home transaction ids.

    The pipeline holds no per-run state; every call to run() builds its own
    table, error log buffer and store client, so one instance may serve
    concurrent runs.
    """

    def __init__(self, config: EnricherConfig, client_factory: ClientFactory | None = None) -> None:
        self.config = config
        self.client_factory = client_factory or open_kv_client

    def run(
        self,
        input_path: Path,
        output_path: Path,
        reporter: ProgressReporter | None = None,
    ) -> RunStatistics:
        """Process one report file.

        Args:
            input_path: Settlement report CSV
            output_path: Where the enriched CSV is written
            reporter: Receives a ProgressEvent at each stage

        Returns:
            RunStatistics for the run

        Raises:
            EnrichmentSetupError: For failures that prevent processing
        """
        report = reporter or null_progress
        started = time.perf_counter()

        report(ProgressEvent(RunStatus.READING, "Reading CSV file..."))
        raw = read_report_csv(input_path)

        report(ProgressEvent(RunStatus.VALIDATING, f"Read {len(raw.records)} rows. Validating..."))
        table = ReportTable(
            columns=raw.columns,
            rows=classify_rows(raw.columns, raw.records),
            labels=raw.labels,
        )
        data_rows = table.data_rows
        section_headers = len(table.rows) - len(data_rows)

        if section_headers > 0:
            message = (
                f"Found {section_headers} section header(s), processing {len(data_rows)} data rows"
            )
            logger.info(message)
            report(ProgressEvent(RunStatus.VALIDATING, message))

        if not data_rows:
            raise EnrichmentSetupError(
                ErrorKind.SCHEMA_INVALID, "CSV validation failed: No valid rows found"
            )

        validation = validate_data_rows(data_rows)
        if not validation.valid:
            raise EnrichmentSetupError(
                ErrorKind.SCHEMA_INVALID,
                f"CSV validation failed: {', '.join(validation.errors)}",
            )
        for warning in validation.warnings:
            logger.warning("validation: %s", warning)

        report(ProgressEvent(RunStatus.CONNECTING, "Connecting to Redis..."))
        error_log = ErrorLogBuffer(self.config.error_log_directory)

        with self.client_factory(self.config.store) as client:
            report(ProgressEvent(RunStatus.PROCESSING, "Querying Redis for transaction IDs..."))
            engine = EnrichmentEngine(
                client,
                key_prefix=self.config.key_prefix,
                progress_interval=self.config.progress_interval,
                reporter=report,
                error_log=error_log,
                file_name=input_path.name,
            )
            stats = engine.enrich(data_rows, section_headers=section_headers)

        self._flush_error_log(error_log)

        report(ProgressEvent(RunStatus.WRITING, "Writing output CSV..."))
        write_report(table, output_path)

        elapsed = time.perf_counter() - started
        report(ProgressEvent(RunStatus.COMPLETE, "Processing complete!"))
        return replace(stats, elapsed_seconds=elapsed)

    def _flush_error_log(self, error_log: ErrorLogBuffer) -> None:
        if len(error_log) == 0:
            return
        try:
            path = error_log.flush()
        except OSError as e:
            logger.warning("failed to write error log: %s", e)
            return
        logger.info("row errors written to %s", path)


def process_report(
    config: EnricherConfig,
    input_path: Path,
    output_path: Path,
    reporter: ProgressReporter | None = None,
    client_factory: ClientFactory | None = None,
) -> RunStatistics:
    """Convenience wrapper: EnrichmentPipeline(config).run(...)."""
    return EnrichmentPipeline(config, client_factory).run(input_path, output_path, reporter)
