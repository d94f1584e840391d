"""
Middleware Package

Contains application middleware components.
"""

from git_cors_proxy.middleware.request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
