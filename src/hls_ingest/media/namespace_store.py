"""Namespace directory handling under the storage root."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ..config import StoragePaths
from ..ingest.ingest_errors import PayloadTooLargeError, StorageError
from .identifiers import generate_namespace_id, is_namespace_id

UPLOAD_STEM = "upload"
MANIFEST_NAME = "index.m3u8"
SEGMENT_PATTERN = "segment_%03d.ts"
COMPLETION_MARKER = ".complete"


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass(slots=True)
class NamespaceStore:
    """Allocate, populate and remove per-upload namespace directories."""

    paths: StoragePaths
    id_factory: Callable[[], str] = generate_namespace_id
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _in_flight: set[str] = field(default_factory=set, init=False, repr=False)

    def namespace_dir(self, namespace: str) -> Path:
        return self.paths.root / namespace

    def create_namespace(self) -> tuple[str, Path]:
        """Allocate a fresh identifier and create its directory exclusively."""
        namespace = self.id_factory()
        directory = self.namespace_dir(namespace)
        try:
            self.paths.root.mkdir(parents=True, exist_ok=True)
            directory.mkdir(exist_ok=False)
        except OSError as exc:
            self.log.error(
                "media.namespace.create_failed",
                extra={"namespace": namespace, "error": str(exc)},
            )
            raise StorageError(f"could not create namespace {namespace}") from exc
        self.log.info("media.namespace.created", extra={"namespace": namespace})
        return namespace, directory

    async def persist_upload(
        self,
        directory: Path,
        source: AsyncReadable,
        extension: str,
        *,
        max_bytes: int,
        chunk_size: int,
    ) -> tuple[Path, int]:
        """Stream ``source`` into ``upload<ext>`` enforcing ``max_bytes`` per chunk."""
        target = directory / f"{UPLOAD_STEM}{extension}"
        written = 0
        try:
            with target.open("wb") as sink:
                while True:
                    chunk = await source.read(chunk_size)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_bytes:
                        raise PayloadTooLargeError(written)
                    sink.write(chunk)
        except PayloadTooLargeError:
            self.log.warning(
                "media.upload.payload_too_large",
                extra={"path": str(target), "limit_bytes": max_bytes},
            )
            raise
        except OSError as exc:
            self.log.error(
                "media.upload.write_failed",
                extra={"path": str(target), "error": str(exc)},
            )
            raise StorageError(f"could not write upload: {exc}") from exc
        return target, written

    def remove_upload(self, path: Path) -> bool:
        """Best-effort removal of the transient upload artifact."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self.log.warning(
                "media.upload.cleanup_failed",
                extra={"path": str(path), "error": str(exc)},
            )
            return False
        return True

    def hold(self, namespace: str) -> None:
        """Shield ``namespace`` from the reaper while a request still owns it."""
        self._in_flight.add(namespace)

    def release(self, namespace: str) -> None:
        self._in_flight.discard(namespace)

    def is_in_flight(self, namespace: str) -> bool:
        return namespace in self._in_flight

    def touch(self, directory: Path) -> None:
        """Refresh the directory mtime the reaper measures age from."""
        try:
            os.utime(directory)
        except OSError as exc:
            self.log.warning(
                "media.namespace.touch_failed",
                extra={"path": str(directory), "error": str(exc)},
            )

    def mark_complete(self, directory: Path) -> None:
        (directory / COMPLETION_MARKER).touch()

    def is_complete(self, directory: Path) -> bool:
        return (directory / COMPLETION_MARKER).exists()

    def remove_namespace(self, namespace: str) -> None:
        self._in_flight.discard(namespace)
        directory = self.namespace_dir(namespace)
        if directory.exists():
            shutil.rmtree(directory, ignore_errors=True)

    def iter_namespaces(self) -> Iterator[Path]:
        """Yield namespace directories currently present under the root."""
        if not self.paths.root.exists():
            return
        for entry in sorted(self.paths.root.iterdir()):
            if entry.is_dir() and is_namespace_id(entry.name):
                yield entry
