"""Permissive CORS headers and preflight short-circuit."""

from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class PermissiveCorsMiddleware:
    """Answer every OPTIONS request with 204 and tag all responses.

    Unhandled exceptions are turned into a plain-text 500 here, carrying the
    CORS headers, and then re-raised for the server error middleware to log.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=CORS_HEADERS)
            await response(scope, receive, send)
            return

        response_started = False

        async def send_with_cors(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                MutableHeaders(scope=message).update(CORS_HEADERS)
            await send(message)

        try:
            await self.app(scope, receive, send_with_cors)
        except Exception:
            if not response_started:
                response = PlainTextResponse(
                    "Internal Server Error", status_code=500, headers=CORS_HEADERS
                )
                await response(scope, receive, send)
            raise
