"""
API Router Module Initialization
"""

from git_cors_proxy.api.proxy import router as proxy_router

__all__ = [
    "proxy_router",
]
