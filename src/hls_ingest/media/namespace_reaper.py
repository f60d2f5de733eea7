"""Helpers for namespace cleanup."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .namespace_store import NamespaceStore

logger = logging.getLogger(__name__)


def find_stale_namespaces(
    store: NamespaceStore,
    grace_seconds: int,
    reference_time: datetime | None = None,
) -> list[str]:
    """Return namespaces without a completion marker older than the grace period.

    Namespaces held by an in-progress request are never returned.
    """
    if grace_seconds <= 0:
        raise ValueError("grace_seconds must be positive")
    now = reference_time or datetime.now()
    cutoff = now - timedelta(seconds=grace_seconds)
    stale: list[str] = []
    for directory in store.iter_namespaces():
        if store.is_complete(directory) or store.is_in_flight(directory.name):
            continue
        try:
            modified = datetime.fromtimestamp(directory.stat().st_mtime)
        except FileNotFoundError:
            continue
        if modified < cutoff:
            stale.append(directory.name)
    return stale


def reap_stale_namespaces(
    store: NamespaceStore,
    grace_seconds: int,
    reference_time: datetime | None = None,
    *,
    dry_run: bool = False,
) -> list[str]:
    """Remove failed or abandoned namespaces and return their identifiers."""
    stale = find_stale_namespaces(store, grace_seconds, reference_time)
    if dry_run:
        return stale
    for namespace in stale:
        store.remove_namespace(namespace)
        logger.info("media.cleanup.removed", extra={"namespace": namespace})
    return stale
