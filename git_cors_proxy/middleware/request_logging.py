"""
Request Logging Middleware Module

Logs method, path, origin, status and latency of every request when verbose
logging is enabled.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from git_cors_proxy.config import get_settings

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request Logging Middleware

    Disabled unless CORS_ENABLE_LOGGING is set; never changes the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        settings = get_settings()
        self.enabled = settings.CORS_ENABLE_LOGGING

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            "%s %s - Origin: %s - %s (%dms)",
            request.method,
            request.url.path,
            request.headers.get("origin") or "no-origin",
            response.status_code,
            elapsed_ms,
        )
        return response
