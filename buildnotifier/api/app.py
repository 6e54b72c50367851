"""FastAPI application receiving build events."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from buildnotifier.api.routes import pubsub
from buildnotifier.bindings.secrets import EnvSecretGetter
from buildnotifier.core.config import (
    get_settings,
    load_notifier_config,
    load_template_source,
    read_template_file,
)
from buildnotifier.core.logging import get_logger, setup_logging
from buildnotifier.notifier import HTTPNotifier

logger = get_logger(__name__)


def build_notifier_from_settings() -> HTTPNotifier:
    """Load configuration and template from disk and set up a notifier.

    Raises:
        NotifierError: If configuration, filter or template is invalid
    """
    settings = get_settings()
    config_path = Path(settings.notifier_config_path)
    config = load_notifier_config(config_path)

    if settings.template_path:
        template_source = read_template_file(settings.template_path)
    else:
        template_source = load_template_source(config, base_dir=config_path.parent)

    return HTTPNotifier.setup(config, template_source, secret_getter=EnvSecretGetter())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    settings = get_settings()

    # Startup
    setup_logging()
    logger.info("Starting application", app_name=settings.app_name, version=settings.app_version)

    owns_notifier = getattr(app.state, "notifier", None) is None
    if owns_notifier:
        app.state.notifier = build_notifier_from_settings()

    yield

    # Shutdown
    logger.info("Shutting down application")
    if owns_notifier:
        await app.state.notifier.close()
        app.state.notifier = None


def create_app(notifier: HTTPNotifier | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        notifier: Ready notifier; built from settings at startup when omitted
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Build event webhook notifier",
        lifespan=lifespan,
    )
    app.state.notifier = notifier

    app.include_router(pubsub.router)

    # Error response handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail
        content = {
            "code": exc.status_code,
            "message": detail if isinstance(detail, str) else "HTTP error",
            "data": None if isinstance(detail, str) else detail,
        }
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "code": 400,
                "message": "Invalid push request",
                "data": jsonable_encoder(exc.errors()),
            },
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(
            status_code=500,
            content={
                "code": 500,
                "message": "Internal server error",
                "data": str(exc) if settings.debug else None,
            },
        )

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "version": settings.app_version}

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Application instance for uvicorn
app = create_app()
