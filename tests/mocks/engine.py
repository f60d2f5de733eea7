"""Fake transcoding engines standing in for ffmpeg."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class EngineScenario(StrEnum):
    SUCCESS = "success"
    FAIL = "fail"
    HANG = "hang"
    MISSING_BINARY = "missing_binary"


@dataclass
class FakeHandle:
    args: list[str]
    released: asyncio.Event = field(default_factory=asyncio.Event)


@dataclass
class FakeEngineRunner:
    """Implements the ProcessRunner capability without spawning processes."""

    scenario: EngineScenario = EngineScenario.SUCCESS
    segments: int = 3
    segment_seconds: float = 4.0
    exit_code_on_failure: int = 1
    invocations: list[list[str]] = field(default_factory=list)
    killed: list[FakeHandle] = field(default_factory=list)
    running: int = 0
    peak_running: int = 0

    async def start(self, args: Sequence[str]) -> FakeHandle:
        if self.scenario is EngineScenario.MISSING_BINARY:
            raise FileNotFoundError(args[0])
        self.invocations.append(list(args))
        self.running += 1
        self.peak_running = max(self.peak_running, self.running)
        return FakeHandle(args=list(args))

    async def wait(self, handle: FakeHandle) -> int:
        try:
            if self.scenario is EngineScenario.HANG:
                await handle.released.wait()
                return -9
            await asyncio.sleep(0)
            if self.scenario is EngineScenario.FAIL:
                return self.exit_code_on_failure
            self._write_output(handle.args)
            return 0
        finally:
            self.running -= 1

    async def kill(self, handle: FakeHandle) -> None:
        self.killed.append(handle)
        handle.released.set()

    def _write_output(self, args: list[str]) -> None:
        manifest = Path(args[-1])
        pattern = args[args.index("-hls_segment_filename") + 1]
        lines = [
            "#EXTM3U",
            "#EXT-X-VERSION:3",
            f"#EXT-X-TARGETDURATION:{int(self.segment_seconds)}",
            "#EXT-X-MEDIA-SEQUENCE:0",
            "#EXT-X-PLAYLIST-TYPE:VOD",
        ]
        for index in range(self.segments):
            segment = Path(pattern % index)
            segment.write_bytes(b"\x47" * 188)
            lines.append(f"#EXTINF:{self.segment_seconds:.6f},")
            lines.append(segment.name)
        lines.append("#EXT-X-ENDLIST")
        manifest.write_text("\n".join(lines) + "\n", encoding="utf-8")


def manifest_segments(manifest_text: str) -> list[str]:
    """Return the segment URIs referenced by an HLS media playlist."""
    return [
        line.strip()
        for line in manifest_text.splitlines()
        if line.strip() and not line.startswith("#")
    ]
