"""
FastAPI Application Factory

Creates and configures the FastAPI application with:
- Middleware (CORS, security headers, upload size limit, error handling)
- Storage service bound to the configured root
- Lifecycle logging (startup/shutdown)

Nothing here binds a port; main.py does that.

@.architecture
Incoming: main.py, tests/conftest.py, config/settings.py, api/router.py, api/middleware/*.py --- {Settings object, APIRouter instances, middleware constructors}
Processing: create_app(), lifespan() --- {5 jobs: application_creation, logging_configuration, middleware_registration, routing_registration, storage_initialization}
Outgoing: main.py, Frontend (HTTP) --- {FastAPI application instance, HTTP responses}
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from api.router import api_router
from api.middleware import (
    UploadSizeLimitMiddleware,
    create_security_headers_middleware,
    create_error_handler_middleware,
    register_exception_handlers,
)
from data.storage import LocalFileStorage
from monitoring import configure_from_preset, get_logger

logger = get_logger(__name__)

LOGGING_PRESET_BY_ENVIRONMENT = {
    "production": "production",
    "test": "testing",
    "development": "development",
}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings to build with (defaults to get_settings())

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    configure_from_preset(
        LOGGING_PRESET_BY_ENVIRONMENT[settings.environment],
        level=settings.monitoring.log_level,
        format_type=settings.monitoring.log_format,
    )

    logger.info(f"Creating {settings.app_name} application (environment: {settings.environment})")

    storage = LocalFileStorage(settings.storage.upload_dir, chunk_size=settings.storage.chunk_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "=== Application Startup ===",
            storage_root=str(storage.base_dir),
            max_upload_bytes=settings.storage.max_upload_bytes,
        )
        yield
        logger.info("=== Shutdown Complete ===")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Upload, download and list PDF files",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        redirect_slashes=False,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.started_at = time.time()

    # ==========================================================================
    # Middleware Configuration (last added runs first)
    # ==========================================================================

    middleware_class, middleware_kwargs = create_error_handler_middleware(
        development=settings.environment == "development" and settings.security.include_error_traceback
    )
    app.add_middleware(middleware_class, **middleware_kwargs)

    app.add_middleware(
        UploadSizeLimitMiddleware,
        max_upload_bytes=settings.storage.max_upload_bytes
    )

    if settings.security.security_headers_enabled:
        middleware_class, middleware_kwargs = create_security_headers_middleware(
            production=settings.environment == "production"
        )
        app.add_middleware(middleware_class, **middleware_kwargs)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    register_exception_handlers(app)

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(api_router)

    return app
