"""Serve manifest and segment files out of namespace directories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from fastapi import HTTPException, status
from fastapi.responses import FileResponse

from ..config import StoragePaths

logger = logging.getLogger(__name__)

SEGMENT_CACHE_CONTROL = "public, max-age=31536000, immutable"


@dataclass(slots=True)
class HlsArtifactService:
    """Resolve request paths under the storage root with HLS cache headers.

    There is no allow-list of namespaces: any existing file below the root
    is servable, including one whose transcode is still running.
    """

    paths: StoragePaths
    manifest_cache_seconds: int = 5

    def resolve(self, request_path: str) -> FileResponse:
        """Return FileResponse for ``request_path`` or raise HTTP errors."""
        target = self._safe_path(request_path)
        if target.name.startswith(".") or not target.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")

        headers: dict[str, str] = {}
        cache_control = self.cache_control_for(target.name)
        if cache_control:
            headers["Cache-Control"] = cache_control
        return FileResponse(path=target, media_type=_guess_mime(target.suffix), headers=headers)

    def cache_control_for(self, filename: str) -> str | None:
        if filename.endswith(".ts"):
            return SEGMENT_CACHE_CONTROL
        if filename.endswith(".m3u8"):
            return f"public, max-age={self.manifest_cache_seconds}"
        return None

    def _safe_path(self, request_path: str) -> Path:
        # Checked on the raw string so no filesystem call happens for traversal attempts.
        if ".." in request_path or "\\" in request_path or "\x00" in request_path:
            logger.warning("hls.request.invalid_path", extra={"request_path": request_path})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid path")

        relative = PurePosixPath(request_path.lstrip("/"))
        if not relative.parts:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")

        root = self.paths.root.resolve()
        target = (root / relative).resolve()
        if not target.is_relative_to(root):
            logger.warning("hls.request.escaped_root", extra={"request_path": request_path})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid path")
        return target


def _guess_mime(suffix: str) -> str:
    lowered = suffix.lower()
    if lowered == ".m3u8":
        return "application/vnd.apple.mpegurl"
    if lowered == ".ts":
        return "video/mp2t"
    return "application/octet-stream"
