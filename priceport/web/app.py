"""FastAPI application factory.

The connection pool is opened in the lifespan handler and passed explicitly to
the gateway; tests inject a ready-made gateway instead.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from priceport import __version__
from priceport.config import Settings, get_settings
from priceport.domain.errors import PriceportError
from priceport.infrastructure.db_factory import open_pool
from priceport.infrastructure.gateway import PriceGateway
from priceport.orchestrator import PriceTransfer
from priceport.utils.logging import get_logger
from priceport.web.routes import router

log = get_logger(__name__)


async def handle_pipeline_error(request: Request, exc: PriceportError) -> JSONResponse:
    """Render pipeline errors as `{"detail": ...}` with their own status code."""
    extra = {
        "path": request.url.path,
        "error_type": type(exc).__name__,
        "status_code": exc.status_code,
    }
    if exc.status_code >= 500:
        log.error(f"Request failed: {exc.message}", extra=extra, exc_info=exc)
    else:
        log.warning(f"Request rejected: {exc.message}", extra=extra)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _bind(app: FastAPI, gateway) -> None:
    app.state.gateway = gateway
    app.state.transfer = PriceTransfer(gateway)


def create_app(gateway=None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the service.

    Parameters
    ----------
    gateway : PriceGateway-like | None
        Pre-built store (tests). When None, the lifespan opens a pool from
        settings and owns it until shutdown.
    settings : Settings | None
        Defaults to get_settings().
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if gateway is not None:
            yield
            return
        pool = open_pool(settings)
        store = PriceGateway(pool, export_batch_size=settings.export_batch_size)
        try:
            if settings.db_auto_create_schema:
                store.ensure_schema()
            _bind(app, store)
            yield
        finally:
            pool.close()
            log.info("Database pool closed")

    app = FastAPI(title="priceport", version=__version__, lifespan=lifespan)
    app.add_exception_handler(PriceportError, handle_pipeline_error)
    app.include_router(router)
    if gateway is not None:
        _bind(app, gateway)
    return app


__all__ = ["create_app", "handle_pipeline_error"]
