"""
Test Configuration Module
"""

import logging
from typing import Callable, Optional

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from git_cors_proxy.api.deps import get_upstream_client
from git_cors_proxy.common.http_client import UpstreamClient
from git_cors_proxy.config import ProxyConfig, get_proxy_config
from git_cors_proxy.main import app

ALLOWED_ORIGIN = "https://app.example.com"

INFO_REFS_BODY = (
    b"001e# service=git-upload-pack\n"
    b"0000"
    b"003f7fd1a60b01f91b314f59955a4e4d4e80d8edf11d refs/heads/master\n"
    b"0000"
)


class UpstreamRecorder:
    """Fake upstream Git host that records every request it receives."""

    def __init__(self, handler: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: list[httpx.Request] = []
        self._handler = handler or self._advertise_refs

    @staticmethod
    def _advertise_refs(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"content-type": "application/x-git-upload-pack-advertisement"},
            content=INFO_REFS_BODY,
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def build_client():
    """Factory returning an AsyncClient bound to the app with a mocked upstream."""

    def _build(handler: Callable[[httpx.Request], httpx.Response], **config_overrides) -> AsyncClient:
        config_kwargs = {
            "allowed_origins": frozenset({ALLOWED_ORIGIN}),
            "allow_loopback": True,
        }
        config_kwargs.update(config_overrides)
        config = ProxyConfig(**config_kwargs)
        client = UpstreamClient(
            timeout=config.timeout,
            follow_redirects=config.follow_redirects,
            transport=httpx.MockTransport(handler),
        )

        app.dependency_overrides[get_proxy_config] = lambda: config
        app.dependency_overrides[get_upstream_client] = lambda: client

        return AsyncClient(transport=ASGITransport(app=app), base_url="http://proxy.test")

    yield _build
    app.dependency_overrides = {}


@pytest.fixture
def propagate_logs(monkeypatch):
    """Let caplog see records from the package logger, which does not propagate."""
    monkeypatch.setattr(logging.getLogger("git_cors_proxy"), "propagate", True)
