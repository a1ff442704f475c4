"""FastAPI application factory and entry point.

Creates the application instance, registers middleware and exception
handlers, mounts the article and health routers and owns the in-process
job queue used by the discovery and batch triggers.

Usage::

    # Development server (from project root)
    uvicorn article_enricher.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from article_enricher.config.settings import get_settings
from article_enricher.core.database import dispose_engine
from article_enricher.core.exceptions import (
    ArticleEnricherError,
    ArticleNotFoundError,
    ConfigurationError,
    DuplicateArticleError,
    EnhancementInProgressError,
    GenerationError,
)
from article_enricher.core.logging_config import configure_logging, request_id_var
from article_enricher.workers.job_queue import JobQueue

logger = structlog.get_logger(__name__)

#: HTTP status per domain exception; the first matching class wins.
_ERROR_STATUS: tuple[tuple[type[ArticleEnricherError], int], ...] = (
    (ArticleNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateArticleError, status.HTTP_409_CONFLICT),
    (EnhancementInProgressError, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
)


async def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate an :class:`ArticleEnricherError` into a JSON error body."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break

    log_fn = logger.error if status_code >= 500 else logger.info
    log_fn("domain_error", error_type=type(exc).__name__, detail=str(exc), status_code=status_code)
    return JSONResponse({"detail": str(exc)}, status_code=status_code)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application.

    Separated from the module-level ``app`` singleton so that tests can
    call ``create_app()`` with a patched settings environment.

    Returns:
        A fully configured ``FastAPI`` instance.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description=(
            "Imports published blog articles, finds top-ranking reference "
            "articles and rewrites the originals with a generative model."
        ),
        version="0.1.0",
        debug=settings.debug,
    )
    application.state.job_queue = JobQueue()

    # ---- Middleware --------------------------------------------------------

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def request_logging_middleware(
        request: Request, call_next: Callable
    ) -> Response:
        """Log every request with its status and duration under a request id."""
        request_id = str(uuid.uuid4())
        token = request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("unhandled_exception", exc_info=exc)
            raise
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response is not None else 500
            log_fn = logger.warning if status_code >= 400 else logger.info
            log_fn("request_complete", status_code=status_code, elapsed_ms=elapsed_ms)
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response

    # ---- Exception handlers ------------------------------------------------

    application.add_exception_handler(ArticleEnricherError, _domain_error_handler)

    # ---- Routers -----------------------------------------------------------

    from article_enricher.api.routes import (  # noqa: PLC0415
        articles,
        health as health_routes,
    )

    application.include_router(health_routes.router)
    application.include_router(articles.router, prefix="/api/articles", tags=["articles"])

    # ---- Lifecycle events --------------------------------------------------

    @application.on_event("startup")
    async def on_startup() -> None:
        """Start the job queue consumer and log startup information."""
        application.state.job_queue.start()
        logger.info(
            "application_startup",
            app_name=settings.app_name,
            debug=settings.debug,
            log_level=settings.log_level,
        )

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Stop the job queue and release database connections."""
        await application.state.job_queue.stop()
        await dispose_engine()
        logger.info("application_shutdown")

    @application.get("/health", tags=["system"], include_in_schema=True)
    async def health() -> JSONResponse:
        """Minimal liveness status without any I/O."""
        return JSONResponse({"status": "ok"})

    return application


app = create_app()
"""The FastAPI application instance passed to Uvicorn."""
