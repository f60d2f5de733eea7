"""HTTP routes for ingest operations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile

from ..auth.auth_dependencies import require_uploader
from ..transcode.transcode_errors import TranscodeFailedError, TranscodeTimeoutError
from .ingest_errors import (
    MissingUploadError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaError,
)
from .ingest_schemas import UploadResponse
from .ingest_service import IngestService
from .validation import limit_request_body

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)

UPLOAD_FIELD = "file"


def get_ingest_service(request: Request) -> IngestService:
    """Fetch ingest service from application state."""
    try:
        return request.app.state.ingest_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("IngestService is not configured") from exc


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadResponse,
)
async def upload_video(
    request: Request,
    _user: str = Depends(require_uploader),
    service: IngestService = Depends(get_ingest_service),
) -> UploadResponse:
    """Accept a multipart video upload, transcode it to HLS and return its URL."""
    validator = service.validator
    bounded = Request(
        request.scope,
        receive=limit_request_body(request.receive, validator.body_limit_bytes),
    )
    try:
        validator.check_declared_length(request.headers.get("content-length"))
        form = await bounded.form(max_files=1)
    except PayloadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="upload exceeds size limit",
        ) from exc

    try:
        upload = form.get(UPLOAD_FIELD)
        if not isinstance(upload, UploadFile):
            logger.warning("ingest.invalid_request_missing_file")
            raise MissingUploadError(UPLOAD_FIELD)

        published = await service.process(upload, upload.filename)
    except MissingUploadError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="file field 'file' required",
        ) from exc
    except UnsupportedMediaError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="only mp4/mov/mkv/webm allowed",
        ) from exc
    except PayloadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="upload exceeds size limit",
        ) from exc
    except StorageError as exc:
        logger.error("ingest.storage_error", extra={"error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="storage error",
        ) from exc
    except TranscodeTimeoutError as exc:
        logger.error(
            "ingest.transcode_timeout",
            extra={"namespace": exc.namespace, "error": str(exc)},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="transcode timed out",
        ) from exc
    except TranscodeFailedError as exc:
        logger.error(
            "ingest.transcode_failed",
            extra={
                "namespace": exc.namespace,
                "exit_code": exc.exit_code,
                "error": str(exc),
            },
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="transcode failed",
        ) from exc
    finally:
        await form.close()

    return UploadResponse(id=published.namespace, hls_url=published.manifest_url)
