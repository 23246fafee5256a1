"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the ASGI entrypoint build the same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from kotoba_api.api.routes import analyze_router, health_router, translate_router
from kotoba_api.core.config import settings
from kotoba_api.core.exception_handlers import setup_exception_handlers
from kotoba_api.core.logging import configure_logging
from kotoba_api.core.middleware import request_id_middleware
from kotoba_api.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Kotoba API",
        description=(
            "English/Japanese translation with romanization and Japanese "
            "morphological analysis for study tools. Responses are cached, "
            "identical concurrent requests share one upstream call, and "
            "per-client, global and daily quotas protect the provider budget."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(translate_router, prefix="/v1")
    app.include_router(analyze_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (tags, shared error schema)
    apply_openapi_customizations(app)

    return app
