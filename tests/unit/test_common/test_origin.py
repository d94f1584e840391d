"""
Unit tests for the origin validator
"""

import pytest

from git_cors_proxy.common.origin import is_origin_allowed

ALLOWED = {"https://app.example.com", "http://staging.example.com:8080"}


class TestAbsentOrigin:
    """Requests without Origin come from git CLIs or same-origin pages"""

    @pytest.mark.parametrize("origin", [None, ""])
    def test_absent_origin_always_allowed(self, origin):
        assert is_origin_allowed(origin, set(), allow_loopback=False) is True
        assert is_origin_allowed(origin, ALLOWED, allow_loopback=True) is True


class TestAllowList:
    def test_listed_origin_allowed(self):
        assert is_origin_allowed("https://app.example.com", ALLOWED, allow_loopback=False) is True

    def test_listed_origin_with_port_allowed(self):
        assert is_origin_allowed("http://staging.example.com:8080", ALLOWED, allow_loopback=False) is True

    def test_unlisted_origin_blocked(self):
        assert is_origin_allowed("https://evil.example", ALLOWED, allow_loopback=True) is False

    def test_match_is_exact(self):
        # Scheme and port are part of the origin
        assert is_origin_allowed("http://app.example.com", ALLOWED, allow_loopback=False) is False
        assert is_origin_allowed("https://app.example.com:8443", ALLOWED, allow_loopback=False) is False
        assert is_origin_allowed("http://staging.example.com", ALLOWED, allow_loopback=False) is False

    def test_trailing_slash_is_not_normalized(self):
        assert is_origin_allowed("https://app.example.com/", ALLOWED, allow_loopback=False) is False


class TestLoopback:
    @pytest.mark.parametrize(
        "origin",
        [
            "http://localhost",
            "http://localhost:3000",
            "https://localhost:8443",
            "http://127.0.0.1:5173",
        ],
    )
    def test_loopback_allowed_on_any_port(self, origin):
        assert is_origin_allowed(origin, set(), allow_loopback=True) is True

    def test_loopback_blocked_when_disabled(self):
        assert is_origin_allowed("http://localhost:3000", set(), allow_loopback=False) is False

    def test_loopback_listed_explicitly_still_allowed_when_disabled(self):
        assert is_origin_allowed("http://localhost:3000", {"http://localhost:3000"}, allow_loopback=False) is True

    def test_lookalike_host_not_treated_as_loopback(self):
        assert is_origin_allowed("http://localhost.evil.example", set(), allow_loopback=True) is False


class TestMalformedOrigin:
    @pytest.mark.parametrize(
        "origin",
        [
            "null",
            "not a url",
            "app.example.com",
            "http://",
            "http://localhost:notaport",
        ],
    )
    def test_malformed_origin_blocked(self, origin):
        assert is_origin_allowed(origin, ALLOWED | {origin}, allow_loopback=True) is False
