"""Dependency wiring helpers."""

from fastapi import FastAPI

from .config import AppConfig
from .ingest.ingest_api import router as ingest_router
from .ingest.ingest_service import IngestService
from .ingest.validation import UploadValidator
from .media.hls_artifact_service import HlsArtifactService
from .media.namespace_store import NamespaceStore
from .public.hls_router import build_hls_router
from .transcode.engine import AsyncioProcessRunner, ProcessRunner
from .transcode.orchestrator import TranscodeOrchestrator


def include_routers(
    app: FastAPI, config: AppConfig, runner: ProcessRunner | None = None
) -> None:
    """Mount module routers and attach services."""
    store = NamespaceStore(config.storage_paths)
    validator = UploadValidator(config.ingest_limits)
    orchestrator = TranscodeOrchestrator(
        settings=config.transcode,
        runner=runner or AsyncioProcessRunner(kill_grace_seconds=config.kill_grace_seconds),
        store=store,
        max_concurrent_jobs=config.max_concurrent_jobs,
    )
    ingest_service = IngestService(
        validator=validator,
        store=store,
        orchestrator=orchestrator,
        limits=config.ingest_limits,
        transcode_timeout_seconds=config.transcode_timeout_seconds,
    )
    artifact_service = HlsArtifactService(
        paths=config.storage_paths,
        manifest_cache_seconds=config.manifest_cache_seconds,
    )

    app.state.config = config
    app.state.credentials = config.credentials
    app.state.namespace_store = store
    app.state.ingest_service = ingest_service
    app.state.artifact_service = artifact_service

    app.include_router(ingest_router)
    app.include_router(build_hls_router(artifact_service))
