import asyncio
from datetime import datetime, timedelta
from io import BytesIO
from pathlib import Path

import pytest
from starlette.datastructures import UploadFile

from src.hls_ingest.config import StoragePaths
from src.hls_ingest.ingest.ingest_errors import (
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaError,
    ValidationError,
)
from src.hls_ingest.ingest.ingest_service import IngestService, manifest_url
from src.hls_ingest.ingest.validation import UploadValidator
from src.hls_ingest.media.namespace_reaper import reap_stale_namespaces
from src.hls_ingest.media.namespace_store import NamespaceStore
from src.hls_ingest.transcode.orchestrator import TranscodeOrchestrator
from src.hls_ingest.transcode.transcode_errors import TranscodeFailedError
from tests.helpers.app_config import build_config
from tests.mocks.engine import EngineScenario, FakeEngineRunner

pytestmark = pytest.mark.unit


def make_upload(data: bytes, filename: str) -> UploadFile:
    return UploadFile(file=BytesIO(data), filename=filename)


def build_service(
    tmp_path: Path, runner: FakeEngineRunner | None = None, **overrides
) -> IngestService:
    config = build_config(tmp_path, **overrides)
    store = NamespaceStore(config.storage_paths)
    config.storage_paths.root.mkdir(parents=True, exist_ok=True)
    orchestrator = TranscodeOrchestrator(
        settings=config.transcode,
        runner=runner or FakeEngineRunner(),
        store=store,
        max_concurrent_jobs=config.max_concurrent_jobs,
    )
    return IngestService(
        validator=UploadValidator(config.ingest_limits),
        store=store,
        orchestrator=orchestrator,
        limits=config.ingest_limits,
        transcode_timeout_seconds=config.transcode_timeout_seconds,
    )


@pytest.mark.asyncio
async def test_intake_persists_exactly_one_file(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    data = b"\x00\x00\x00\x18ftypmp42" * 10

    result = await service.intake(make_upload(data, "Holiday.MP4"), "Holiday.MP4")

    directory = service.store.namespace_dir(result.namespace)
    assert result.input_path == directory / "upload.mp4"
    assert result.size_bytes == len(data)
    assert [p.name for p in directory.iterdir()] == ["upload.mp4"]


@pytest.mark.asyncio
async def test_intake_rejects_txt_before_creating_namespace(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    with pytest.raises(UnsupportedMediaError):
        await service.intake(make_upload(b"hello", "notes.txt"), "notes.txt")

    assert list(service.store.paths.root.iterdir()) == []


@pytest.mark.asyncio
async def test_intake_one_byte_over_limit_leaves_no_namespace(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    limit = 4096

    with pytest.raises(PayloadTooLargeError) as excinfo:
        await service.intake(make_upload(b"z" * (limit + 1), "big.mkv"), "big.mkv", limit)

    assert isinstance(excinfo.value, ValidationError)
    assert list(service.store.paths.root.iterdir()) == []


@pytest.mark.asyncio
async def test_intake_accepts_payload_exactly_at_limit(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    result = await service.intake(make_upload(b"z" * 4096, "edge.webm"), "edge.webm", 4096)

    assert result.input_path.stat().st_size == 4096


@pytest.mark.asyncio
async def test_intake_surfaces_storage_errors(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    service.store.id_factory = lambda: "c" * 24
    (service.store.paths.root / ("c" * 24)).mkdir()

    with pytest.raises(StorageError):
        await service.intake(make_upload(b"data", "clip.mp4"), "clip.mp4")


@pytest.mark.asyncio
async def test_process_publishes_manifest_url_and_drops_upload(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    published = await service.process(make_upload(b"video", "clip.mov"), "clip.mov")

    directory = service.store.namespace_dir(published.namespace)
    assert published.manifest_url == f"/hls/{published.namespace}/index.m3u8"
    assert published.manifest_url == manifest_url(published.namespace)
    assert (directory / "index.m3u8").exists()
    assert not (directory / "upload.mov").exists()


@pytest.mark.asyncio
async def test_process_propagates_transcode_failure(tmp_path: Path) -> None:
    runner = FakeEngineRunner(scenario=EngineScenario.FAIL)
    service = build_service(tmp_path, runner=runner)

    with pytest.raises(TranscodeFailedError):
        await service.process(make_upload(b"video", "clip.mp4"), "clip.mp4")

    (directory,) = list(service.store.iter_namespaces())
    assert not (directory / "upload.mp4").exists()
    assert not service.store.is_complete(directory)


@pytest.mark.asyncio
async def test_queued_and_running_namespaces_survive_the_reaper(tmp_path: Path) -> None:
    runner = FakeEngineRunner(scenario=EngineScenario.HANG)
    service = build_service(tmp_path, runner=runner, max_concurrent_jobs=1)
    tasks = [
        asyncio.create_task(service.process(make_upload(b"\x00" * 64, "clip.mp4"), "clip.mp4"))
        for _ in range(2)
    ]
    while len(list(service.store.iter_namespaces())) < 2 or not runner.invocations:
        await asyncio.sleep(0.01)

    later = datetime.now() + timedelta(seconds=3601)
    removed = reap_stale_namespaces(service.store, 3600, later)

    assert removed == []
    assert len(list(service.store.iter_namespaces())) == 2
    assert len(runner.invocations) == 1

    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    assert len(reap_stale_namespaces(service.store, 3600, later)) == 2
    assert list(service.store.iter_namespaces()) == []
