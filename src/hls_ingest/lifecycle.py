"""Lifecycle helpers wiring background tasks for FastAPI startup."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from .media.namespace_reaper import reap_stale_namespaces
from .media.namespace_store import NamespaceStore

logger = logging.getLogger(__name__)


async def run_periodic_namespace_cleanup(
    *,
    store: NamespaceStore,
    grace_seconds: int,
    shutdown_event: asyncio.Event,
    interval_seconds: float = 900.0,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Sweep stale namespaces until ``shutdown_event`` is signalled."""

    interval = max(1.0, float(interval_seconds))
    tick = clock or datetime.now
    while not shutdown_event.is_set():
        try:
            removed = await asyncio.to_thread(
                reap_stale_namespaces, store, grace_seconds, tick()
            )
        except Exception:  # pragma: no cover
            logger.exception("Namespace cleanup iteration failed")
        else:
            if removed:
                logger.info("Purged %s stale namespaces during cleanup", len(removed))
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


__all__ = ["run_periodic_namespace_cleanup"]
