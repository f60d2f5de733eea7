"""Upload validation utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath

from starlette.types import Message, Receive

from ..config import IngestLimits
from .ingest_errors import PayloadTooLargeError, UnsupportedMediaError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UploadValidator:
    """Validate ingest payloads against configured limits."""

    limits: IngestLimits

    def validate_filename(self, filename: str | None) -> str:
        """Return the lowercased extension of ``filename`` or raise.

        Only the declared name is inspected; file contents are not sniffed.
        """
        extension = PurePath(filename or "").suffix.lower()
        allowed = {ext.lower() for ext in self.limits.allowed_extensions}
        if extension not in allowed:
            logger.warning(
                "ingest.upload.unsupported_media",
                extra={"upload_filename": filename, "extension": extension},
            )
            raise UnsupportedMediaError(filename or "")
        return extension

    def check_declared_length(self, content_length: str | None) -> None:
        """Reject a request whose Content-Length cannot fit under the ceiling."""
        if not content_length:
            return
        try:
            declared = int(content_length)
        except ValueError:
            return
        cap = self.body_limit_bytes
        if declared > cap:
            logger.warning(
                "ingest.upload.payload_too_large",
                extra={"size_bytes": declared, "limit_bytes": cap},
            )
            raise PayloadTooLargeError(declared)

    @property
    def body_limit_bytes(self) -> int:
        """Ceiling for the raw request body, multipart framing included."""
        return self.limits.max_upload_bytes + self.limits.multipart_allowance_bytes


def limit_request_body(receive: Receive, max_bytes: int) -> Receive:
    """Wrap an ASGI ``receive`` so reading stops once ``max_bytes`` is exceeded.

    Raises :class:`PayloadTooLargeError` from the read that crosses the ceiling,
    before the oversized chunk reaches the multipart parser.
    """
    received = 0

    async def limited() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_bytes:
                logger.warning(
                    "ingest.upload.body_too_large",
                    extra={"size_bytes": received, "limit_bytes": max_bytes},
                )
                raise PayloadTooLargeError(received)
        return message

    return limited
