"""
Unit tests for Git request detection
"""

import pytest

from git_cors_proxy.common.git_detection import (
    GitOperation,
    classify,
    detect_git_request,
    extract_git_service,
    is_git_clone_request,
    is_git_push_request,
    is_git_request,
    is_valid_git_request,
)

REPO = "/github.com/user/repo.git"

# (operation, method, path, query, headers) for the six canonical shapes
CANONICAL_SHAPES = [
    (
        GitOperation.PREFLIGHT_INFO_REFS,
        "OPTIONS",
        f"{REPO}/info/refs",
        {"service": "git-upload-pack"},
        {},
    ),
    (
        GitOperation.INFO_REFS,
        "GET",
        f"{REPO}/info/refs",
        {"service": "git-receive-pack"},
        {},
    ),
    (
        GitOperation.PREFLIGHT_PULL,
        "OPTIONS",
        f"{REPO}/git-upload-pack",
        {},
        {"access-control-request-headers": "authorization,content-type"},
    ),
    (
        GitOperation.PULL,
        "POST",
        f"{REPO}/git-upload-pack",
        {},
        {"content-type": "application/x-git-upload-pack-request"},
    ),
    (
        GitOperation.PREFLIGHT_PUSH,
        "OPTIONS",
        f"{REPO}/git-receive-pack",
        {},
        {"access-control-request-headers": "content-type"},
    ),
    (
        GitOperation.PUSH,
        "POST",
        f"{REPO}/git-receive-pack",
        {},
        {"content-type": "application/x-git-receive-pack-request"},
    ),
]


class TestStrictClassifier:
    @pytest.mark.parametrize("operation,method,path,query,headers", CANONICAL_SHAPES)
    def test_canonical_shapes_classified(self, operation, method, path, query, headers):
        assert classify(method, path, query, headers) is operation
        assert is_valid_git_request(method, path, query, headers) is True

    @pytest.mark.parametrize("operation,method,path,query,headers", CANONICAL_SHAPES)
    def test_wrong_method_is_not_git(self, operation, method, path, query, headers):
        other = "PUT"
        assert classify(other, path, query, headers) is GitOperation.NOT_GIT

    @pytest.mark.parametrize("operation,method,path,query,headers", CANONICAL_SHAPES)
    def test_wrong_path_suffix_is_not_git(self, operation, method, path, query, headers):
        assert classify(method, path + "/extra", query, headers) is GitOperation.NOT_GIT

    @pytest.mark.parametrize("operation,method,path,query,headers", CANONICAL_SHAPES)
    def test_missing_extra_condition_is_not_git(self, operation, method, path, query, headers):
        assert classify(method, path, {}, {}) is GitOperation.NOT_GIT

    def test_unknown_service_is_not_git(self):
        assert classify("GET", f"{REPO}/info/refs", {"service": "git-archive"}, {}) is GitOperation.NOT_GIT

    def test_pull_content_type_must_match_exactly(self):
        headers = {"content-type": "application/x-git-upload-pack-request; charset=utf-8"}
        assert classify("POST", f"{REPO}/git-upload-pack", {}, headers) is GitOperation.NOT_GIT

    def test_push_content_type_does_not_match_pull_path(self):
        headers = {"content-type": "application/x-git-receive-pack-request"}
        assert classify("POST", f"{REPO}/git-upload-pack", {}, headers) is GitOperation.NOT_GIT

    def test_header_names_are_case_insensitive(self):
        headers = {"Content-Type": "application/x-git-upload-pack-request"}
        assert classify("POST", f"{REPO}/git-upload-pack", {}, headers) is GitOperation.PULL

    def test_preflight_headers_substring_match(self):
        headers = {"access-control-request-headers": "authorization, content-type, git-protocol"}
        assert classify("OPTIONS", f"{REPO}/git-receive-pack", {}, headers) is GitOperation.PREFLIGHT_PUSH


class TestHeuristicDetector:
    def test_service_parameter(self):
        info = detect_git_request("GET", "/anything", {"service": "git-upload-pack"}, {})
        assert info.is_git is True
        assert info.detected_by == ["service"]
        assert info.details["service"] == "git-upload-pack"

    def test_info_refs_path(self):
        info = detect_git_request("GET", f"{REPO}/info/refs", {}, {})
        assert info.is_git is True
        assert "path" in info.detected_by

    def test_dot_git_path(self):
        info = detect_git_request("POST", f"{REPO}/git-upload-pack", {}, {})
        assert info.is_git is True
        assert info.details["pathPattern"] == ".git/"

    def test_git_user_agent(self):
        info = detect_git_request("GET", "/github.com/user/repo", {}, {"user-agent": "git/2.39.0"})
        assert info.detected_by == ["user-agent"]

    def test_browser_request_is_not_git(self):
        info = detect_git_request("GET", "/api/status", {}, {"user-agent": "Mozilla/5.0"})
        assert info.is_git is False
        assert info.detected_by == []

    def test_all_heuristics_reported(self):
        info = detect_git_request(
            "GET",
            f"{REPO}/info/refs",
            {"service": "git-upload-pack"},
            {"user-agent": "git/2.39.0"},
        )
        assert info.detected_by == ["service", "path", "user-agent"]


class TestDetectionModes:
    def test_union_accepts_bare_pull_post(self):
        # No content-type: strict says no, the .git/ path says yes
        assert is_git_request("POST", f"{REPO}/git-upload-pack", {}, {}, mode="union") is True

    def test_strict_rejects_bare_pull_post(self):
        assert is_git_request("POST", f"{REPO}/git-upload-pack", {}, {}, mode="strict") is False

    def test_union_accepts_preflight_without_service(self):
        headers = {"access-control-request-headers": "authorization"}
        assert is_git_request("OPTIONS", f"{REPO}/info/refs", {}, headers, mode="union") is True
        assert is_git_request("OPTIONS", f"{REPO}/info/refs", {}, headers, mode="strict") is False

    @pytest.mark.parametrize("operation,method,path,query,headers", CANONICAL_SHAPES)
    def test_both_modes_accept_canonical_shapes(self, operation, method, path, query, headers):
        assert is_git_request(method, path, query, headers, mode="strict") is True
        assert is_git_request(method, path, query, headers, mode="union") is True

    def test_neither_mode_accepts_plain_request(self):
        for mode in ("strict", "union"):
            assert is_git_request("POST", "/api/status", {}, {"user-agent": "curl/8.0"}, mode=mode) is False


class TestServiceHelpers:
    def test_extract_known_service(self):
        assert extract_git_service({"service": "git-receive-pack"}) == "git-receive-pack"

    def test_extract_unknown_service(self):
        assert extract_git_service({"service": "evil"}) is None
        assert extract_git_service({}) is None

    def test_clone_and_push_intent(self):
        assert is_git_clone_request({"service": "git-upload-pack"}) is True
        assert is_git_push_request({"service": "git-upload-pack"}) is False
        assert is_git_push_request({"service": "git-receive-pack"}) is True
        assert is_git_clone_request({}) is False
