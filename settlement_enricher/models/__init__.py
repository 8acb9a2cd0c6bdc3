"""Domain models for the settlement report enricher.

This package contains the dataclasses shared by the reader, the enrichment
engine, the serializer and the CLI.
"""

from .config_models import EnricherConfig, StoreConfig
from .error_record import ErrorRecord
from .progress_event import ProgressEvent, RunStatus
from .report_row import (
    DataRow,
    EnrichmentOutcome,
    HeaderRow,
    OutcomeKind,
    ReportRow,
    ReportTable,
)
from .run_statistics import RunStatistics, StatisticsAccumulator

__all__ = [
    # Configuration models
    "EnricherConfig",
    "StoreConfig",
    # Report models
    "DataRow",
    "HeaderRow",
    "ReportRow",
    "ReportTable",
    "EnrichmentOutcome",
    "OutcomeKind",
    # Run models
    "ErrorRecord",
    "ProgressEvent",
    "RunStatus",
    "RunStatistics",
    "StatisticsAccumulator",
]
