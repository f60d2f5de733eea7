"""Terminal failure states of a transcode job."""


class TranscodeError(Exception):
    """Base class for transcode failures."""


class TranscodeTimeoutError(TranscodeError):
    """Raised when the engine does not exit before the job deadline."""

    def __init__(self, namespace: str, deadline_seconds: float) -> None:
        super().__init__(
            f"transcode of {namespace} exceeded {deadline_seconds:g}s deadline"
        )
        self.namespace = namespace
        self.deadline_seconds = deadline_seconds


class TranscodeFailedError(TranscodeError):
    """Raised when the engine cannot start or exits with a non-zero status."""

    def __init__(self, namespace: str, exit_code: int | None, reason: str = "") -> None:
        detail = reason or f"exit status {exit_code}"
        super().__init__(f"transcode of {namespace} failed: {detail}")
        self.namespace = namespace
        self.exit_code = exit_code
