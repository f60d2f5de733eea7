"""Data structures describing one transcode invocation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path


class JobState(StrEnum):
    """Lifecycle of a transcode job; the last three are terminal."""

    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(slots=True)
class TranscodeJob:
    """In-flight engine execution bound to one namespace. Never persisted."""

    namespace: str
    input_path: Path
    output_dir: Path
    deadline_seconds: float
    state: JobState = JobState.CREATED
    exit_code: int | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()
