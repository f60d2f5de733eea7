"""Domain service for ingest operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import IngestLimits
from ..media.namespace_store import MANIFEST_NAME, AsyncReadable, NamespaceStore
from ..transcode.orchestrator import TranscodeOrchestrator
from .ingest_errors import IngestError
from .ingest_models import IntakeResult, PublishedStream
from .validation import UploadValidator

logger = logging.getLogger(__name__)

HLS_URL_PREFIX = "/hls"


@dataclass(slots=True)
class IngestService:
    """Coordinates intake, transcode and publication of one upload."""

    validator: UploadValidator
    store: NamespaceStore
    orchestrator: TranscodeOrchestrator
    limits: IngestLimits
    transcode_timeout_seconds: float
    log: logging.Logger = field(default_factory=lambda: logger)

    async def intake(
        self,
        source: AsyncReadable,
        declared_filename: str | None,
        size_limit: int | None = None,
    ) -> IntakeResult:
        """Validate the declared name and persist the stream into a new namespace.

        The extension is checked before any directory is created. If
        persisting fails, the partially populated namespace is removed.
        On success the namespace stays held in the store until the caller
        releases it.
        """
        extension = self.validator.validate_filename(declared_filename)
        limit = self.limits.max_upload_bytes if size_limit is None else size_limit

        namespace, directory = self.store.create_namespace()
        self.store.hold(namespace)
        try:
            input_path, size = await self.store.persist_upload(
                directory,
                source,
                extension,
                max_bytes=limit,
                chunk_size=self.limits.chunk_size_bytes,
            )
        except IngestError:
            self.store.remove_namespace(namespace)
            raise
        except BaseException:
            self.store.release(namespace)
            raise

        self.log.info(
            "ingest.upload.persisted",
            extra={
                "namespace": namespace,
                "size_bytes": size,
                "extension": extension,
            },
        )
        return IntakeResult(namespace=namespace, input_path=input_path, size_bytes=size)

    async def process(
        self, source: AsyncReadable, declared_filename: str | None
    ) -> PublishedStream:
        """Run the whole pipeline synchronously and return the stream location."""
        accepted = await self.intake(source, declared_filename)
        try:
            await self.orchestrator.transcode(
                accepted.input_path,
                self.store.namespace_dir(accepted.namespace),
                self.transcode_timeout_seconds,
            )
        finally:
            self.store.release(accepted.namespace)
        published = PublishedStream(
            namespace=accepted.namespace,
            manifest_url=manifest_url(accepted.namespace),
        )
        self.log.info(
            "ingest.job.published",
            extra={"namespace": published.namespace, "hls_url": published.manifest_url},
        )
        return published


def manifest_url(namespace: str) -> str:
    return f"{HLS_URL_PREFIX}/{namespace}/{MANIFEST_NAME}"
