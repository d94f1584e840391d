"""
Git Proxy API

Catch-all endpoint forwarding Git Smart HTTP requests: /{domain}/{repo-path...}
"""

from fastapi import APIRouter, Request

from git_cors_proxy.api.deps import ForwardingServiceDep

router = APIRouter(tags=["Proxy - Git"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/{proxy_path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def git_proxy(
    proxy_path: str,
    request: Request,
    service: ForwardingServiceDep,
):
    """
    Git Smart HTTP Proxy

    Proxy errors propagate to the application exception handlers.
    """
    return await service.handle(request)
