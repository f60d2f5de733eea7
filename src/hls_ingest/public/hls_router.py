"""Public HLS endpoints (unauthenticated playback)."""

from fastapi import APIRouter

from ..media.hls_artifact_service import HlsArtifactService


def build_hls_router(service: HlsArtifactService) -> APIRouter:
    router = APIRouter(prefix="/hls", tags=["hls"])

    @router.get("/{file_path:path}")
    def get_artifact(file_path: str):
        return service.resolve(file_path)

    return router
