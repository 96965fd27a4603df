"""FastAPI app factory: wires token store, storage engine and authorizer into routes."""
from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from filegate.api import router as api_router
from filegate.config import Settings, load_settings
from filegate.domain.clock import Clock, SystemClock
from filegate.logging_conf import get_logger, setup_logging
from filegate.service.authorizer import RequestAuthorizer
from filegate.service.storage import StorageEngine
from filegate.service.tokens import TokenService
from filegate.store import InMemoryTokenStore, SqliteTokenStore, TokenStore

# Configure logging before anything else.
setup_logging()
logger = get_logger("app")


def _make_store(settings: Settings) -> TokenStore:
    if settings.token_db:
        return SqliteTokenStore(settings.token_db)
    return InMemoryTokenStore()


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[TokenStore] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store if store is not None else _make_store(settings)

    tokens = TokenService(store, clock or SystemClock(), signing_secret=settings.signing_secret)
    storage = StorageEngine(settings.storage_root)

    app = FastAPI(title="filegate", version=settings.app_version)
    app.state.settings = settings
    app.state.tokens = tokens
    app.state.storage = storage
    app.state.authorizer = RequestAuthorizer(tokens)
    app.state.sweeper = None

    @app.on_event("startup")
    async def _on_startup() -> None:
        await storage.ensure_root()
        app.state.sweeper = asyncio.create_task(tokens.run_sweeper(settings.sweep_interval_s))
        logger.info(
            "startup",
            extra={"event": "startup", "storage_root": str(storage.root), "token_db": settings.token_db},
        )

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        sweeper = app.state.sweeper
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        if isinstance(store, SqliteTokenStore):
            store.close()
        logger.info("shutdown", extra={"event": "shutdown"})

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Response]):
        """JSON request logging with a correlation id.

        Reuses an incoming X-Request-ID or mints one, and echoes it on the response.
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                # The first path segment of capability routes is a bearer token.
                "route": request.url.path.split("/")[1] if request.url.path != "/" else "",
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={"event": "request_error", "method": request.method, "request_id": request_id},
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    @app.get("/health", summary="Liveness/readiness check")
    async def health() -> JSONResponse:
        return JSONResponse(content={"ok": True})

    app.include_router(api_router)

    return app


# ASGI entrypoint for uvicorn: `uvicorn filegate.main:app --port 8000`
app = create_app()
