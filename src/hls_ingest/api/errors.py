"""Plain-text rendering of HTTP errors."""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


async def plain_text_http_error_handler(
    _: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Render ``HTTPException`` detail as a ``text/plain`` body, keeping headers."""

    return PlainTextResponse(
        content=str(exc.detail),
        status_code=exc.status_code,
        headers=dict(exc.headers or {}),
    )


__all__ = ["plain_text_http_error_handler"]
