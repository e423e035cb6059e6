"""
Main entrypoint for the subscription service.

This module assembles the FastAPI application: logging, the database
pool lifecycle, error rendering, request logging, the static API
description and the resource routers.  ``create_app`` builds and
configures the app, which is then instantiated at module import time as
``app`` so it can be served with uvicorn, e.g.::

    uvicorn subscription_service.app.main:app

or through ``run.py`` at the project root, which also configures the
graceful shutdown period.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.router import router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import create_pool, init_db
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def resolve_docs_dir(docs_dir: str) -> Path:
    """Absolute documentation directory; relative paths hang off the project root."""
    path = Path(docs_dir)
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _log_failure(request: Request, status_code: int, error: object) -> None:
    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(
        level,
        "handled request method=%s path=%s status=%s error=%s",
        request.method,
        request.url.path,
        status_code,
        error,
    )


def create_app(
    settings: Optional[Settings] = None,
    pool_factory: Callable[[Settings], Awaitable] = create_pool,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the values read from the
        environment at import time.
    pool_factory : Callable
        Coroutine function opening the database pool.  The application
        refuses to start if it raises.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Logging comes first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file or None)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pool = await pool_factory(settings)
        try:
            if settings.db_init_schema:
                await init_db(pool)
            app.state.pool = pool
            logger.info("subscription service ready on port %s", settings.server_port)
            yield
        finally:
            logger.info("shutting down subscription service")
            await pool.close()

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        lifespan=lifespan,
        # /docs serves the static documentation directory instead.
        docs_url="/openapi-docs",
        redoc_url=None,
    )
    app.state.settings = settings

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request served method=%s path=%s status=%s duration_ms=%d request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        _log_failure(request, exc.status_code, exc.__cause__ or exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        _log_failure(request, status.HTTP_400_BAD_REQUEST, exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "invalid body"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal server error"},
        )

    app.include_router(api_router)

    docs_dir = resolve_docs_dir(settings.docs_dir)

    @app.get("/swagger.yaml", include_in_schema=False)
    async def swagger_document() -> FileResponse:
        path = docs_dir / "swagger.yaml"
        if not path.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
        return FileResponse(path, media_type="application/yaml")

    if docs_dir.is_dir():
        app.mount("/docs", StaticFiles(directory=docs_dir, html=True), name="docs")
    else:
        logger.warning("documentation directory %s not found, /docs disabled", docs_dir)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
