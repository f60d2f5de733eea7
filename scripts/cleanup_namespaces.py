"""Cron entry point for removing failed or abandoned namespaces."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import datetime

from src.hls_ingest.config import load_config
from src.hls_ingest.media.namespace_reaper import reap_stale_namespaces
from src.hls_ingest.media.namespace_store import NamespaceStore


@dataclass(slots=True)
class CleanupSummary:
    namespaces_removed: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    grace_seconds: int | None = None,
    reference_time: datetime | None = None,
) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    config = load_config()
    store = NamespaceStore(config.storage_paths)
    grace = config.reaper_grace_seconds if grace_seconds is None else grace_seconds
    now = reference_time or datetime.now()

    removed = reap_stale_namespaces(store, grace, now, dry_run=dry_run)
    return CleanupSummary(namespaces_removed=len(removed), dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cleanup stale HLS namespaces.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument("--grace-seconds", type=int, default=None, help="Override HLS_REAPER_GRACE_SECONDS.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(dry_run=args.dry_run, grace_seconds=args.grace_seconds)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, namespaces_stale={summary.namespaces_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, namespaces_removed={summary.namespaces_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
