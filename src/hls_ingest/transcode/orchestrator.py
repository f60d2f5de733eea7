"""Drive one ffmpeg HLS transcode under a hard deadline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from ..config import TranscodeSettings
from ..media.namespace_store import NamespaceStore
from .command import build_hls_command
from .engine import ProcessRunner
from .transcode_errors import TranscodeFailedError, TranscodeTimeoutError
from .transcode_models import JobState, TranscodeJob

log = structlog.get_logger(__name__)


@dataclass(slots=True)
class TranscodeOrchestrator:
    """Build the engine invocation, supervise it and interpret its outcome.

    At most ``max_concurrent_jobs`` engine processes run at once. A job waits
    at most ``deadline_seconds`` for admission, staying in ``created``; the
    engine then gets a fresh ``deadline_seconds`` of its own.
    """

    settings: TranscodeSettings
    runner: ProcessRunner
    store: NamespaceStore
    max_concurrent_jobs: int = 1
    _admission: asyncio.Semaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be positive")
        self._admission = asyncio.Semaphore(self.max_concurrent_jobs)

    async def transcode(
        self,
        input_path: Path,
        output_dir: Path,
        deadline_seconds: float,
    ) -> TranscodeJob:
        """Run the engine to completion, raising on timeout or failure.

        The upload artifact at ``input_path`` is removed afterwards whatever
        the outcome.
        """
        if deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive")
        job = TranscodeJob(
            namespace=output_dir.name,
            input_path=input_path,
            output_dir=output_dir,
            deadline_seconds=deadline_seconds,
        )
        try:
            await self._admit(job)
            try:
                self.store.touch(output_dir)
                await self._run(job)
            finally:
                self._admission.release()
        finally:
            self.store.remove_upload(input_path)
        return job

    async def _admit(self, job: TranscodeJob) -> None:
        try:
            await asyncio.wait_for(self._admission.acquire(), timeout=job.deadline_seconds)
        except asyncio.TimeoutError as exc:
            self._finish(job, JobState.TIMED_OUT)
            log.warning(
                "transcode.job.admission_timeout",
                namespace=job.namespace,
                deadline_seconds=job.deadline_seconds,
            )
            raise TranscodeTimeoutError(job.namespace, job.deadline_seconds) from exc

    async def _run(self, job: TranscodeJob) -> None:
        args = build_hls_command(self.settings, job.input_path, job.output_dir)
        try:
            handle = await self.runner.start(args)
        except OSError as exc:
            self._finish(job, JobState.FAILED)
            log.error(
                "transcode.job.start_failed",
                namespace=job.namespace,
                binary=args[0],
                error=str(exc),
            )
            raise TranscodeFailedError(job.namespace, None, "engine could not start") from exc

        job.state = JobState.RUNNING
        job.started_at = datetime.utcnow()
        log.info(
            "transcode.job.started",
            namespace=job.namespace,
            deadline_seconds=job.deadline_seconds,
        )

        try:
            exit_code = await asyncio.wait_for(
                self.runner.wait(handle), timeout=job.deadline_seconds
            )
        except asyncio.TimeoutError as exc:
            await self.runner.kill(handle)
            self._finish(job, JobState.TIMED_OUT)
            log.warning(
                "transcode.job.timeout",
                namespace=job.namespace,
                deadline_seconds=job.deadline_seconds,
                duration_seconds=job.duration_seconds,
            )
            raise TranscodeTimeoutError(job.namespace, job.deadline_seconds) from exc
        except asyncio.CancelledError:
            await self._kill_on_cancel(handle)
            self._finish(job, JobState.FAILED)
            log.warning("transcode.job.cancelled", namespace=job.namespace)
            raise

        job.exit_code = exit_code
        if exit_code != 0:
            self._finish(job, JobState.FAILED)
            log.error(
                "transcode.job.failed",
                namespace=job.namespace,
                exit_code=exit_code,
                duration_seconds=job.duration_seconds,
            )
            raise TranscodeFailedError(job.namespace, exit_code)

        self.store.mark_complete(job.output_dir)
        self._finish(job, JobState.COMPLETED)
        log.info(
            "transcode.job.completed",
            namespace=job.namespace,
            duration_seconds=job.duration_seconds,
        )

    async def _kill_on_cancel(self, handle: Any) -> None:
        # Shielded so a second cancellation cannot leave the engine running.
        await asyncio.shield(self.runner.kill(handle))

    @staticmethod
    def _finish(job: TranscodeJob, state: JobState) -> None:
        job.state = state
        job.finished_at = datetime.utcnow()
