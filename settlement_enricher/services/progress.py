from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from settlement_enricher.models.progress_event import ProgressEvent

"""Progress reporting.

Two independent channels:
- ProgressReporter callbacks receive staged ProgressEvent records (reading,
  validating, connecting, processing, writing, complete). log_progress is the
  default reporter and writes them to the application log.
- RowProgressTracker draws a tqdm bar over the data rows, TTY only, so CI logs
  stay free of ANSI control sequences.
"""

__all__ = [
    "ProgressReporter",
    "log_progress",
    "null_progress",
    "is_tty_enabled",
    "RowProgressTracker",
]

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[ProgressEvent], None]


def log_progress(event: ProgressEvent) -> None:
    logger.info("Progress: %s", event)


def null_progress(event: ProgressEvent) -> None:
    pass


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgressTracker:
    """tqdm progress bar over the data rows of one report."""

    def __init__(self, total_rows: int, *, description: str = "Enriching rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, **postfix: Any) -> None:
        """Mark one row done and refresh the stats postfix."""
        self.current_row += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if postfix:
                self.pbar.set_postfix(**postfix)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
