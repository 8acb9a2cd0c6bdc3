from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Progress event model.

The pipeline emits one ProgressEvent at each lifecycle stage (and periodically
while processing rows). Consumers may relay them over any transport; the CLI
just logs them.
"""

__all__ = [
    "RunStatus",
    "ProgressEvent",
]


class RunStatus(Enum):
    """Lifecycle stages of a run, in the order they are reported.

    reading → validating → connecting → processing → writing → complete
    """
    READING = "reading"
    VALIDATING = "validating"
    CONNECTING = "connecting"
    PROCESSING = "processing"
    WRITING = "writing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ProgressEvent:
    status: RunStatus
    message: str
    progress: int | None = None  # 0-100, processing stage only

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"status": self.status.value, "message": self.message}
        if self.progress is not None:
            data["progress"] = self.progress
        return data

    def __str__(self) -> str:
        text = f"{self.status.value} - {self.message}"
        if self.progress is not None:
            text += f" ({self.progress}%)"
        return text
