"""Forwarding Service Module

Implements the per-request proxy pipeline:

Received -> OriginChecked -> Classified -> {Rejected | PreflightHandled | TargetResolved}
-> UpstreamCalled -> ResponseTransformed -> Sent
"""

import logging
from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from git_cors_proxy.common.errors import (
    NotGitRequestError,
    OriginRejectedError,
    UpstreamFailureError,
)
from git_cors_proxy.common.git_detection import (
    detect_git_request,
    is_git_clone_request,
    is_git_push_request,
    is_git_request,
)
from git_cors_proxy.common.http_client import UpstreamClient
from git_cors_proxy.common.origin import is_origin_allowed
from git_cors_proxy.common.proxy_headers import (
    build_cors_headers,
    build_downstream_headers,
    build_preflight_headers,
    build_upstream_headers,
)
from git_cors_proxy.common.proxy_url import ProxyTarget, resolve_proxy_target
from git_cors_proxy.common.sanitizer import auth_scheme, sanitize_headers
from git_cors_proxy.config import ProxyConfig

logger = logging.getLogger(__name__)

# GET and HEAD never carry a body upstream.
METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}

NON_GIT_HINT = "Use URLs like /github.com/user/repo.git/info/refs for Git operations"


def request_path(request: Request) -> str:
    """
    Path of the inbound request as sent by the client (not percent-decoded).

    Some ASGI clients put the query string into raw_path, so it is cut off here.
    """
    raw_path: Optional[bytes] = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


class ForwardingService:
    """
    Git Forwarding Service

    Handles the complete flow of a proxied request:
    1. Validate the Origin header against the allow-list
    2. Classify the request as Git Smart HTTP or not
    3. Answer Git CORS preflights without contacting upstream
    4. Resolve the upstream target and rewrite request headers
    5. Forward method, headers and body with manual redirect handling
    6. Rewrite response headers and stream the body back
    """

    def __init__(self, config: ProxyConfig, client: UpstreamClient):
        self.config = config
        self.client = client

    async def handle(self, request: Request) -> Response:
        """
        Process one inbound request.

        Raises:
            OriginRejectedError: Origin not allowed
            NotGitRequestError: Non-Git POST or OPTIONS
            MalformedProxyUrlError: Path is not /domain/path
            UpstreamFailureError: Upstream unreachable
        """
        method = request.method.upper()
        path = request_path(request)
        headers = request.headers
        query_params = request.query_params
        origin = headers.get("origin")

        if not is_origin_allowed(origin, self.config.allowed_origins, self.config.allow_loopback):
            logger.debug("%s %s: origin %r blocked", method, path, origin)
            raise OriginRejectedError(details={"origin": origin})

        if not is_git_request(method, path, query_params, headers, mode=self.config.detection_mode):
            return self._handle_non_git(request, method, path, origin)

        if method == "OPTIONS":
            logger.debug("%s %s: Git preflight answered for origin %r", method, path, origin)
            return Response(status_code=204, headers=build_preflight_headers(origin))

        target = resolve_proxy_target(path, request.url.query, self.config.insecure_origins)
        return await self._forward(request, method, target, origin)

    def _handle_non_git(
        self,
        request: Request,
        method: str,
        path: str,
        origin: Optional[str],
    ) -> Response:
        logger.debug("%s %s: not a Git request", method, path)
        if method in ("POST", "OPTIONS"):
            raise NotGitRequestError(details={"method": method, "path": path})

        info = detect_git_request(method, path, request.query_params, request.headers)
        return JSONResponse(
            content={
                "message": "Not a Git request",
                "url": str(request.url),
                "method": method,
                "isGit": False,
                "detectedBy": info.detected_by,
                "hint": NON_GIT_HINT,
            },
            headers=build_cors_headers(origin),
        )

    async def _forward(
        self,
        request: Request,
        method: str,
        target: ProxyTarget,
        origin: Optional[str],
    ) -> Response:
        outbound_headers = build_upstream_headers(request.headers)
        # httpx frames the buffered body itself; bodiless methods must not declare one
        outbound_headers.pop("content-length", None)

        # Starlette caches the buffered body, so it can be read again for retries or logging.
        body = await request.body() if method in METHODS_WITH_BODY else None

        self._log_forward(method, target, request, outbound_headers, body)

        try:
            upstream = await self.client.send(
                method=method,
                url=target.target_url,
                headers=outbound_headers,
                content=body,
            )
        except httpx.RequestError as e:
            logger.error(
                "Upstream request failed: method=%s url=%s error=%s: %s",
                method,
                target.target_url,
                type(e).__name__,
                e,
            )
            raise UpstreamFailureError(details={"target": target.target_url}) from e

        redirected_url = str(upstream.url) if upstream.history else None
        response_headers = build_downstream_headers(upstream.headers, origin, redirected_url)

        logger.debug(
            "%s %s -> %s (redirected=%s)",
            method,
            target.target_url,
            upstream.status_code,
            redirected_url is not None,
        )

        if method == "HEAD":
            await upstream.aclose()
            return Response(status_code=upstream.status_code, headers=response_headers)

        return StreamingResponse(
            upstream.aiter_bytes(),
            status_code=upstream.status_code,
            headers=response_headers,
            background=BackgroundTask(upstream.aclose),
        )

    def _log_forward(
        self,
        method: str,
        target: ProxyTarget,
        request: Request,
        outbound_headers: dict[str, str],
        body: Optional[bytes],
    ) -> None:
        if not self.config.verbose_logging:
            return

        query_params = request.query_params
        if is_git_clone_request(query_params):
            intent = "clone/fetch"
        elif is_git_push_request(query_params):
            intent = "push"
        else:
            intent = "negotiation"

        authorization = outbound_headers.get("authorization")
        logger.debug(
            "Proxying %s %s (%s): auth=%s headers=%s body_bytes=%s",
            method,
            target.target_url,
            intent,
            auth_scheme(authorization) if authorization else "none",
            sanitize_headers(outbound_headers),
            len(body) if body is not None else 0,
        )
