"""
Proxy header utilities.

Outbound: the headers forwarded to the upstream Git host are filtered through an
allow-list, the User-Agent is forced into the git/ dialect, and Authorization is
always carried over verbatim.

Inbound: upstream response headers are filtered through the exposed-headers list
and decorated with the CORS header set. Body framing headers are never copied
because the ASGI server re-frames the streamed body.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Optional

# Headers a browser client may send and the proxy forwards upstream.
ALLOWED_REQUEST_HEADERS = (
    "accept",
    "accept-encoding",
    "accept-language",
    "authorization",
    "cache-control",
    "connection",
    "content-length",
    "content-type",
    "dnt",
    "git-protocol",
    "pragma",
    "range",
    "referer",
    "user-agent",
    "x-authorization",
    "x-http-method-override",
    "x-requested-with",
)

# Upstream response headers made visible to browser JavaScript.
EXPOSED_RESPONSE_HEADERS = (
    "accept-ranges",
    "age",
    "cache-control",
    "content-length",
    "content-language",
    "content-type",
    "date",
    "etag",
    "expires",
    "last-modified",
    "location",
    "pragma",
    "server",
    "transfer-encoding",
    "vary",
    "www-authenticate",
    "x-github-request-id",
    "x-request-id",
    "x-redirected-url",
)

# Framing headers the server recomputes for the forwarded body.
_DROP_RESPONSE_HEADERS = {"content-length", "transfer-encoding"}

ALLOWED_METHODS = ("GET", "POST", "OPTIONS")

# Upstream Git hosts sniff the User-Agent and answer git/* clients in the Smart HTTP dialect.
GIT_USER_AGENT = "git/@git-cors-proxy"

PREFLIGHT_MAX_AGE = "86400"

REDIRECTED_URL_HEADER = "x-redirected-url"

_SCHEME_RE = re.compile(r"^https?://")


def _first_values(headers: Mapping[str, str]) -> dict[str, str]:
    lowered: dict[str, str] = {}
    for key, value in headers.items():
        lowered.setdefault(key.lower(), value)
    return lowered


def build_upstream_headers(incoming: Mapping[str, str]) -> dict[str, str]:
    """
    Build the header set sent to the upstream Git host.

    Applying this function to its own output returns the same mapping.

    Args:
        incoming: Client request headers (any key case)

    Returns:
        dict: Lower-cased outbound headers
    """
    lowered = _first_values(incoming)

    outbound: dict[str, str] = {}
    for name in ALLOWED_REQUEST_HEADERS:
        value = lowered.get(name)
        if value:
            outbound[name] = value

    if not outbound.get("user-agent", "").startswith("git/"):
        outbound["user-agent"] = GIT_USER_AGENT

    # Authorization must survive even if the allow-list above ever drops it.
    authorization = lowered.get("authorization")
    if authorization:
        outbound["authorization"] = authorization

    return outbound


def build_cors_headers(origin: Optional[str]) -> dict[str, str]:
    """CORS headers for a validated origin, or "*" when the request had none."""
    headers = {
        "access-control-allow-origin": origin or "*",
        "access-control-allow-methods": ", ".join(ALLOWED_METHODS),
        "access-control-allow-headers": ", ".join(ALLOWED_REQUEST_HEADERS),
        "access-control-expose-headers": ", ".join(EXPOSED_RESPONSE_HEADERS),
        "access-control-allow-credentials": "false",
    }
    if origin:
        headers["vary"] = "Origin"
    return headers


def build_preflight_headers(origin: Optional[str]) -> dict[str, str]:
    headers = build_cors_headers(origin)
    headers["access-control-max-age"] = PREFLIGHT_MAX_AGE
    return headers


def copy_exposed_headers(upstream: Mapping[str, str]) -> dict[str, str]:
    """
    Copy exposed upstream headers.

    Body framing headers are skipped, and so is x-redirected-url, which only the
    proxy sets after following redirects.
    """
    lowered = _first_values(upstream)
    copied: dict[str, str] = {}
    for name in EXPOSED_RESPONSE_HEADERS:
        if name in _DROP_RESPONSE_HEADERS or name == REDIRECTED_URL_HEADER:
            continue
        value = lowered.get(name)
        if value:
            copied[name] = value
    return copied


def rewrite_location(location: str) -> str:
    """
    Strip a leading http:// or https:// from a redirect target.

    Examples:
        >>> rewrite_location("https://github.com/x/y/")
        'github.com/x/y/'
        >>> rewrite_location("/x/y/")
        '/x/y/'
    """
    return _SCHEME_RE.sub("", location, count=1)


def redirect_annotation(final_url: str, redirected: bool) -> dict[str, str]:
    """Diagnostic header naming the final upstream URL after followed redirects."""
    if not redirected:
        return {}
    return {REDIRECTED_URL_HEADER: final_url}


def build_downstream_headers(
    upstream_headers: Mapping[str, str],
    cors_origin: Optional[str],
    redirected_url: Optional[str] = None,
) -> dict[str, str]:
    """
    Build the response headers returned to the browser.

    Args:
        upstream_headers: Headers of the upstream response
        cors_origin: Validated request origin, None when the request had none
        redirected_url: Final upstream URL when the client followed redirects

    Returns:
        dict: Lower-cased response headers
    """
    headers = build_cors_headers(cors_origin)
    exposed = copy_exposed_headers(upstream_headers)

    # Keep Origin in Vary when the upstream sends its own list
    upstream_vary = exposed.pop("vary", None)
    headers.update(exposed)
    if upstream_vary:
        if cors_origin and "origin" not in upstream_vary.lower():
            headers["vary"] = f"{upstream_vary}, Origin"
        else:
            headers["vary"] = upstream_vary

    if "location" in headers:
        headers["location"] = rewrite_location(headers["location"])

    headers.update(redirect_annotation(redirected_url or "", redirected_url is not None))
    return headers
