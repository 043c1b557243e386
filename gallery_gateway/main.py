"""
FastAPI application entry points.

Two applications are built here with application factories:
- create_app(): the gallery gateway (upload / delete / transform / status)
- create_migration_app(): the Albumizr migration function

Factories keep initialization order explicit and let tests build fresh
instances with dependency overrides.

For local development:
    uvicorn gallery_gateway.main:app --reload
    uvicorn gallery_gateway.main:migration_app --port 8001 --reload

For production:
    gunicorn gallery_gateway.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.dependencies import get_cors_policy
from .api.routes import albums, gateway
from .config.settings import get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs the configuration summary on startup. A missing bucket binding is
    reported but not fatal: storage calls answer with a configuration error
    until it is fixed, and the status endpoint keeps working.
    """
    settings = get_settings()

    logger.info(
        "Gallery gateway starting",
        extra={
            "version": settings.api_version,
            "bucket": settings.album_bucket or None,
            "mock_mode": settings.r2_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Gallery gateway shutting down")


def create_app() -> FastAPI:
    """
    Gateway application factory.

    The gateway answers every path itself (any GET that is not a transform
    is the status descriptor), so the interactive docs are disabled rather
    than shadowing gateway paths. CORS is handled by the gateway's own
    allow-list policy instead of CORSMiddleware, which would omit the
    header for unknown origins instead of sending the fallback origin.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Upload, delete and serve gallery widget images stored in R2.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    app.include_router(gateway.router)

    # Methods outside the gateway route never reach the gateway, so the
    # router's 405 (and any other HTTP error) is re-shaped here with CORS.
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        cors_headers = get_cors_policy().headers_for(request.headers.get("origin"))
        if exc.status_code == 405:
            return PlainTextResponse(
                "Method not allowed",
                status_code=405,
                headers=cors_headers,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=cors_headers,
        )

    # Failures outside the gateway (e.g. building a dependency) still get
    # the catch-all envelope with CORS headers.
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        cors_headers = get_cors_policy().headers_for(request.headers.get("origin"))
        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc),
                "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
                "type": type(exc).__name__,
            },
            headers=cors_headers,
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


def create_migration_app() -> FastAPI:
    """Album migration application factory."""
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.api_title} - Album Migration",
        version=settings.api_version,
        description="Scrape Albumizr albums for import into the gallery widget.",
        docs_url=None,
        redoc_url=None,
    )

    app.include_router(albums.router, tags=["Migration"])

    return app


# Create the application instances
# These are what uvicorn/gunicorn will import
app = create_app()
migration_app = create_migration_app()


# For debugging/development
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "gallery_gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
