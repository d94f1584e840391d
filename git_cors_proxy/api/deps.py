"""
API Dependency Injection Module

Provides dependencies required by FastAPI routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from git_cors_proxy.common.http_client import UpstreamClient
from git_cors_proxy.config import ProxyConfig, get_proxy_config
from git_cors_proxy.services import ForwardingService


# Immutable configuration snapshot
ProxyConfigDep = Annotated[ProxyConfig, Depends(get_proxy_config)]


def get_upstream_client(request: Request) -> UpstreamClient:
    """Get the shared upstream client created at application startup"""
    return request.app.state.upstream_client


UpstreamClientDep = Annotated[UpstreamClient, Depends(get_upstream_client)]


def get_forwarding_service(
    config: ProxyConfigDep,
    client: UpstreamClientDep,
) -> ForwardingService:
    """Get forwarding service"""
    return ForwardingService(config, client)


ForwardingServiceDep = Annotated[ForwardingService, Depends(get_forwarding_service)]
