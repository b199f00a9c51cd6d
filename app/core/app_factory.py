"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the ASGI entrypoint build the exact same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import health_router, report_download_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Report Download API",
        description=(
            "Releases the AI Implementation Report in exchange for an email "
            "address. Downloads are rate limited per client IP, recorded for "
            "lead tracking and confirmed by email."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(report_download_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
