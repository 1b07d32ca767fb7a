"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures logging,
middleware, routes, exception handlers and the persistence store.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_helpdesk.core.config import Settings, settings
from campus_helpdesk.core.exceptions import AppException
from campus_helpdesk.core.exception_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from campus_helpdesk.middleware import RequestContextMiddleware
from campus_helpdesk.api import auth, stats, staff, tickets
from campus_helpdesk.store.provider import StoreProvider, create_store_provider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    app_settings: Optional[Settings] = None,
    store_provider: Optional[StoreProvider] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations.
    The storage backend is fixed here, once per process.

    Args:
        app_settings: Settings to use instead of the environment's
        store_provider: Provider to use instead of one built from settings

    Returns:
        Configured FastAPI application instance
    """
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL)

    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        description="Campus IT support ticket API",
        version=app_settings.VERSION,
        docs_url=f"{app_settings.API_V1_PREFIX}/docs",
        redoc_url=f"{app_settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{app_settings.API_V1_PREFIX}/openapi.json",
    )

    app.state.store_provider = store_provider or create_store_provider(app_settings)

    # Register exception handlers
    # WHY: Every failure gets the same JSON body and no stack trace leaks out
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Request ids for log correlation
    app.add_middleware(RequestContextMiddleware)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        """
        Health check endpoint.

        WHY: Allows load balancers and monitoring to verify service health
        without checking authentication or database connectivity.
        """
        return {
            "status": "healthy",
            "version": app_settings.VERSION,
            "store": app_settings.STORE_BACKEND,
        }

    @app.on_event("startup")
    async def startup_event():
        """Create tables or seed demo data, depending on the backend."""
        await app.state.store_provider.startup()
        logger.info("%s %s started", app_settings.PROJECT_NAME, app_settings.VERSION)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release database connections."""
        await app.state.store_provider.shutdown()

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": app_settings.PROJECT_NAME,
            "version": app_settings.VERSION,
            "docs": f"{app_settings.API_V1_PREFIX}/docs",
        }

    # Register API routers
    app.include_router(auth.router, prefix=app_settings.API_V1_PREFIX)
    app.include_router(tickets.router, prefix=app_settings.API_V1_PREFIX)
    app.include_router(stats.router, prefix=app_settings.API_V1_PREFIX)
    app.include_router(staff.router, prefix=app_settings.API_V1_PREFIX)

    return app


# Create app instance
# WHY: Creating the app instance here allows it to be imported by uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campus_helpdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
