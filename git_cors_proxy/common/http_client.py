"""
HTTP Client Wrapper Module

Provides the asynchronous HTTP client used to reach upstream Git hosts.
"""

from typing import Optional

import httpx

from git_cors_proxy.config import get_settings


class UpstreamClient:
    """
    Asynchronous HTTP Client Wrapper

    Wraps httpx.AsyncClient with the proxy's timeout and redirect policy.
    Responses are returned unread so the body can be streamed to the browser.
    """

    def __init__(
        self,
        timeout: Optional[int] = None,
        follow_redirects: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP Client

        Args:
            timeout: Request timeout (seconds), defaults to configuration
            follow_redirects: Follow upstream redirects, defaults to configuration
            transport: Custom httpx transport
        """
        settings = get_settings()
        self.timeout = timeout or settings.HTTP_TIMEOUT
        if follow_redirects is None:
            follow_redirects = settings.UPSTREAM_FOLLOW_REDIRECTS
        self.follow_redirects = follow_redirects
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create HTTP client instance

        Returns:
            httpx.AsyncClient: HTTP client instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=self.follow_redirects,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP Client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """
        Send a request and return the response with its body unread

        The caller owns the response and must close it with ``aclose()``.

        Args:
            method: HTTP method
            url: Absolute upstream URL
            headers: Outbound request headers
            content: Buffered request body, None for bodiless methods

        Returns:
            httpx.Response: Streaming HTTP response

        Raises:
            httpx.RequestError: On DNS, connection or timeout failures
        """
        client = self._get_client()
        request = client.build_request(
            method=method,
            url=url,
            headers=headers,
            content=content,
        )
        return await client.send(request, stream=True)
