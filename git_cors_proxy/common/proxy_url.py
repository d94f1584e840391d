"""
Proxy URL Resolver

Maps an inbound path of the form /{domain}/{repo-path...} to the upstream URL.
"""

import re
from collections.abc import Collection
from dataclasses import dataclass

from git_cors_proxy.common.errors import MalformedProxyUrlError

_PROXY_PATH_RE = re.compile(r"/([^/]+)/(.*)", re.DOTALL)


@dataclass(frozen=True)
class ProxyTarget:
    """
    Resolved Upstream Target

    target_url is always f"{protocol}://{domain}/{remaining_path}".
    """

    # First path segment (e.g., github.com)
    domain: str
    # Rest of the path plus "?query" when the query is non-empty
    remaining_path: str
    # Absolute upstream URL
    target_url: str


def resolve_proxy_target(
    path: str,
    query: str,
    insecure_origins: Collection[str] = (),
) -> ProxyTarget:
    """
    Resolve the upstream target for a proxied request.

    The query string is appended exactly as received. Domains listed in
    ``insecure_origins`` are reached over plain HTTP, everything else over HTTPS.

    Args:
        path: Request path, e.g. /github.com/user/repo.git/info/refs
        query: Raw query string without the leading "?"
        insecure_origins: Domains to proxy over HTTP

    Returns:
        ProxyTarget: Resolved target

    Raises:
        MalformedProxyUrlError: If the path has no segment after the domain
    """
    match = _PROXY_PATH_RE.match(path)
    if not match:
        raise MalformedProxyUrlError(path)

    domain, rest = match.groups()
    remaining_path = f"{rest}?{query}" if query else rest
    protocol = "http" if domain in insecure_origins else "https"

    return ProxyTarget(
        domain=domain,
        remaining_path=remaining_path,
        target_url=f"{protocol}://{domain}/{remaining_path}",
    )
