import asyncio
import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from src.hls_ingest.config import StoragePaths
from src.hls_ingest.lifecycle import run_periodic_namespace_cleanup
from src.hls_ingest.media.namespace_store import NamespaceStore

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_periodic_cleanup_runs_until_shutdown(tmp_path: Path) -> None:
    store = NamespaceStore(StoragePaths(root=tmp_path))
    _, directory = store.create_namespace()
    stamp = (datetime.now() - timedelta(hours=3)).timestamp()
    os.utime(directory, (stamp, stamp))
    shutdown = asyncio.Event()

    task = asyncio.create_task(
        run_periodic_namespace_cleanup(
            store=store,
            grace_seconds=3600,
            shutdown_event=shutdown,
            interval_seconds=60,
        )
    )
    for _ in range(100):
        if not directory.exists():
            break
        await asyncio.sleep(0.01)
    shutdown.set()
    await asyncio.wait_for(task, timeout=2)

    assert not directory.exists()
