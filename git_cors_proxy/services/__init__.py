"""
Service Layer Module Initialization
"""

from git_cors_proxy.services.forwarding_service import ForwardingService

__all__ = [
    "ForwardingService",
]
