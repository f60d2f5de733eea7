"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.errors import plain_text_http_error_handler
from .config import AppConfig, ensure_storage, load_config
from .cors import PermissiveCorsMiddleware
from .dependencies import include_routers
from .lifecycle import run_periodic_namespace_cleanup
from .logging import configure_logging
from .transcode.engine import ProcessRunner

logger = logging.getLogger(__name__)


def _build_lifespan(config: AppConfig):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        shutdown_event = asyncio.Event()
        reaper: asyncio.Task[None] | None = None
        if config.reaper_interval_seconds > 0:
            reaper = asyncio.create_task(
                run_periodic_namespace_cleanup(
                    store=app.state.namespace_store,
                    grace_seconds=config.reaper_grace_seconds,
                    shutdown_event=shutdown_event,
                    interval_seconds=config.reaper_interval_seconds,
                )
            )
        logger.info("app.started", extra={"storage_root": str(config.storage_paths.root)})
        try:
            yield
        finally:
            shutdown_event.set()
            if reaper is not None:
                reaper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reaper
            logger.info("app.stopped")

    return lifespan


def create_app(
    config: AppConfig | None = None, runner: ProcessRunner | None = None
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    ensure_storage(cfg.storage_paths)

    app = FastAPI(title="HLS Ingest", lifespan=_build_lifespan(cfg))
    app.add_middleware(PermissiveCorsMiddleware)
    app.add_exception_handler(StarletteHTTPException, plain_text_http_error_handler)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    include_routers(app, cfg, runner=runner)
    return app


def run() -> None:
    """Serve the application on the configured listen address."""
    cfg = load_config()
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    run()
