"""
Origin Validator

Decides whether a request's Origin header may receive CORS headers.
"""

from collections.abc import Collection
from typing import Optional
from urllib.parse import urlsplit

LOOPBACK_HOSTS = {"localhost", "127.0.0.1"}


def is_origin_allowed(
    origin: Optional[str],
    allowed_origins: Collection[str],
    allow_loopback: bool = True,
) -> bool:
    """
    Check an Origin header against the allow-list.

    Requests without an Origin (same-origin requests and the git CLI) are always
    allowed. An origin that does not parse as an absolute URL is never allowed.
    Loopback hosts are allowed on any port when ``allow_loopback`` is set;
    everything else must match an allowed origin exactly (scheme, host and port).

    Examples:
        >>> is_origin_allowed(None, set())
        True
        >>> is_origin_allowed("http://localhost:8080", set(), allow_loopback=True)
        True
        >>> is_origin_allowed("https://evil.example", {"https://app.example.com"})
        False
    """
    if not origin:
        return True

    try:
        parsed = urlsplit(origin)
        hostname = parsed.hostname
        # Accessing .port validates it
        parsed.port
    except ValueError:
        return False

    if not parsed.scheme or not hostname:
        return False

    if allow_loopback and hostname in LOOPBACK_HOSTS:
        return True

    return origin in allowed_origins
