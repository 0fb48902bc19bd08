from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request

from aggregarr.infrastructure.config import AppConfig
from aggregarr.interfaces.app_state import AppState
from aggregarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def _register_routers(app: FastAPI) -> None:
    from aggregarr.interfaces.api.indexers.router import router as indexers_router
    from aggregarr.interfaces.api.search.router import router as search_router

    for router in (indexers_router, search_router):
        app.include_router(router)


def build_app(config: AppConfig) -> FastAPI:
    """Create the ASGI app. Only the config is attached here; the store,
    HTTP client and indexer manager are owned by lifespan().
    """
    app = FastAPI(
        title="Aggregarr",
        description="Multi-backend torrent indexer aggregator",
        version="0.1.0",
        lifespan=lifespan,
    )
    state = AppState()
    state.config = config
    app.state = state

    _register_routers(app)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        # request_id is bound for every event logged while handling the request
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=uuid.uuid4().hex[:12])

        started = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code if response is not None else 500,
                duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
                client_host=request.client.host if request.client else None,
            )

    return app
