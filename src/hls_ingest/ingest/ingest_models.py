"""Data structures for ingest pipeline."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class IntakeResult:
    """Namespace allocated for an accepted upload and the persisted input."""

    namespace: str
    input_path: Path
    size_bytes: int


@dataclass(slots=True)
class PublishedStream:
    namespace: str
    manifest_url: str
