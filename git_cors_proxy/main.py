"""
Git CORS Proxy Application Entry Point

FastAPI application main entry, including router registration and application configuration.
"""

import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from git_cors_proxy import __version__
from git_cors_proxy.api import proxy_router
from git_cors_proxy.common.errors import AppError
from git_cors_proxy.common.http_client import UpstreamClient
from git_cors_proxy.config import get_proxy_config, get_settings
from git_cors_proxy.logging_config import setup_logging
from git_cors_proxy.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)

# Initialize logging configuration
setup_logging()

_started_at = time.monotonic()


def _log_startup() -> None:
    settings = get_settings()
    config = get_proxy_config()
    logger.info("%s %s listening on %s:%s", settings.APP_NAME, __version__, settings.HOST, settings.PORT)
    logger.info("Allowed origins: %s", ", ".join(sorted(config.allowed_origins)) or "none")
    logger.info("Allow localhost origins: %s", config.allow_loopback)
    logger.info("Git detection mode: %s", config.detection_mode)
    logger.info("Verbose logging: %s", config.verbose_logging)
    if config.verbose_logging:
        logger.debug("Insecure HTTP origins: %s", ", ".join(sorted(config.insecure_origins)) or "none")


# Application Lifecycle Management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifecycle Management

    Open the shared upstream client on startup, close it on shutdown.
    """
    config = get_proxy_config()
    app.state.upstream_client = UpstreamClient(
        timeout=config.timeout,
        follow_redirects=config.follow_redirects,
    )
    _log_startup()
    yield
    await app.state.upstream_client.close()


settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="CORS proxy for browser-based Git clients (Git Smart HTTP)",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

app.add_middleware(RequestLoggingMiddleware)


# Global Exception Handler
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Handle proxy exceptions

    Bodies are terse; details are logged, never returned.
    """
    logger.info(
        "%s %s rejected: %s (%s) %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
        exc.details,
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions

    Stack traces and error details are logged but not returned to clients.
    """
    logger.error(
        "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
        str(exc),
        request.url.path,
        traceback.format_exc(),
    )
    return PlainTextResponse("Internal proxy error", status_code=500)


# Health Check Endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health Check

    Used for service liveness probe.
    """
    config = get_proxy_config()
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": int(time.monotonic() - _started_at),
        "configuration": {
            "allowedOrigins": sorted(config.allowed_origins),
            "corsAllowLocalhost": config.allow_loopback,
            "corsEnableLogging": config.verbose_logging,
            "gitDetectionMode": config.detection_mode,
        },
    }


@app.get("/", tags=["Health"])
async def root():
    """
    Root Path

    Returns basic service information.
    """
    return {
        "status": "online",
        "name": settings.APP_NAME,
        "version": __version__,
        "description": "CORS proxy for browser-based Git clients such as isomorphic-git",
        "usage": "/{domain}/{owner}/{repo}.git/info/refs?service=git-upload-pack",
    }


# Register Proxy Router last so it never shadows the endpoints above
app.include_router(proxy_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "git_cors_proxy.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )
