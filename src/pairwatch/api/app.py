"""FastAPI application factory for the read API."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pairwatch.api import routes
from pairwatch.exceptions import StoreUnavailableError

log = structlog.get_logger(__name__)


async def _store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    log.error("api_store_unavailable", path=request.url.path, error=str(exc))
    return routes.envelope(error=str(exc), status_code=503)


def create_api_app(lifespan: Any = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        lifespan: Optional async context manager for startup/shutdown, injected
                  by main.py. Route handlers read ``store``, ``database``,
                  ``scheduler`` and ``dispatcher`` from ``app.state``.

    Returns:
        Configured FastAPI application with the ``/api`` routes registered.
    """
    app = FastAPI(title="pairwatch", lifespan=lifespan)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable)
    app.include_router(routes.router, prefix="/api")
    return app
