"""External process capability used by the transcode orchestrator."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

log = structlog.get_logger(__name__)


class ProcessRunner(Protocol):
    """Start, await and kill an external command."""

    async def start(self, args: Sequence[str]) -> Any: ...

    async def wait(self, handle: Any) -> int: ...

    async def kill(self, handle: Any) -> None: ...


@dataclass(slots=True)
class ProcessHandle:
    process: asyncio.subprocess.Process
    pumps: list[asyncio.Task[None]] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.process.pid


async def _forward_output(stream: asyncio.StreamReader, channel: str, pid: int) -> None:
    # Engine output is relayed to logging as-is; it is never parsed.
    while True:
        line = await stream.readline()
        if not line:
            return
        log.info(
            "transcode.engine.output",
            pid=pid,
            channel=channel,
            line=line.decode("utf-8", errors="replace").rstrip(),
        )


@dataclass(slots=True)
class AsyncioProcessRunner:
    """Run the engine with ``asyncio.create_subprocess_exec``."""

    kill_grace_seconds: float = 5.0

    async def start(self, args: Sequence[str]) -> ProcessHandle:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        handle = ProcessHandle(process=process)
        for channel, stream in (("stdout", process.stdout), ("stderr", process.stderr)):
            if stream is not None:
                handle.pumps.append(
                    asyncio.create_task(_forward_output(stream, channel, process.pid))
                )
        log.info("transcode.engine.started", pid=process.pid, binary=args[0])
        return handle

    async def wait(self, handle: ProcessHandle) -> int:
        returncode = await handle.process.wait()
        if handle.pumps:
            await asyncio.gather(*handle.pumps, return_exceptions=True)
        return returncode

    async def kill(self, handle: ProcessHandle) -> None:
        process = handle.process
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
            except asyncio.TimeoutError:
                log.error("transcode.engine.kill_unreaped", pid=process.pid)
        for pump in handle.pumps:
            pump.cancel()
        log.warning("transcode.engine.killed", pid=process.pid, returncode=process.returncode)
