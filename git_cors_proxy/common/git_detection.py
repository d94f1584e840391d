"""
Git Request Detection

Decides whether an inbound HTTP request is a Git Smart HTTP operation.

Two detectors exist:

- the strict classifier, which recognises the six request shapes of the Smart
  HTTP transport (ref discovery, upload-pack and receive-pack, plus their CORS
  preflights);
- a heuristic detector, which accepts any request carrying a Git ``service``
  query parameter, a Git-looking path, or a ``git/`` User-Agent.

The proxy accepts the union of both by default.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)

UPLOAD_PACK = "git-upload-pack"
RECEIVE_PACK = "git-receive-pack"
GIT_SERVICES = (UPLOAD_PACK, RECEIVE_PACK)

UPLOAD_PACK_REQUEST_TYPE = "application/x-git-upload-pack-request"
RECEIVE_PACK_REQUEST_TYPE = "application/x-git-receive-pack-request"

# Heuristic patterns
GIT_PATHS = ("/info/refs", ".git/")
GIT_USER_AGENTS = ("git/",)


class GitOperation(str, Enum):
    """Recognised Git Smart HTTP request shapes."""

    PREFLIGHT_INFO_REFS = "preflight_info_refs"
    INFO_REFS = "info_refs"
    PREFLIGHT_PULL = "preflight_pull"
    PULL = "pull"
    PREFLIGHT_PUSH = "preflight_push"
    PUSH = "push"
    NOT_GIT = "not_git"


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup, first value wins, absent is empty."""
    value = headers.get(name)
    if value is not None:
        return value
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return ""


def _has_git_service(query_params: Mapping[str, str]) -> bool:
    return query_params.get("service") in GIT_SERVICES


def is_preflight_info_refs(method, path, query_params, headers) -> bool:
    return method == "OPTIONS" and path.endswith("/info/refs") and _has_git_service(query_params)


def is_info_refs(method, path, query_params, headers) -> bool:
    return method == "GET" and path.endswith("/info/refs") and _has_git_service(query_params)


def is_preflight_pull(method, path, query_params, headers) -> bool:
    return (
        method == "OPTIONS"
        and "content-type" in _header(headers, "access-control-request-headers")
        and path.endswith(UPLOAD_PACK)
    )


def is_pull(method, path, query_params, headers) -> bool:
    return (
        method == "POST"
        and _header(headers, "content-type") == UPLOAD_PACK_REQUEST_TYPE
        and path.endswith(UPLOAD_PACK)
    )


def is_preflight_push(method, path, query_params, headers) -> bool:
    return (
        method == "OPTIONS"
        and "content-type" in _header(headers, "access-control-request-headers")
        and path.endswith(RECEIVE_PACK)
    )


def is_push(method, path, query_params, headers) -> bool:
    return (
        method == "POST"
        and _header(headers, "content-type") == RECEIVE_PACK_REQUEST_TYPE
        and path.endswith(RECEIVE_PACK)
    )


_PREDICATES = (
    (GitOperation.PREFLIGHT_INFO_REFS, is_preflight_info_refs),
    (GitOperation.INFO_REFS, is_info_refs),
    (GitOperation.PREFLIGHT_PULL, is_preflight_pull),
    (GitOperation.PULL, is_pull),
    (GitOperation.PREFLIGHT_PUSH, is_preflight_push),
    (GitOperation.PUSH, is_push),
)


def classify(
    method: str,
    path: str,
    query_params: Mapping[str, str],
    headers: Mapping[str, str],
) -> GitOperation:
    """
    Classify a request against the six Smart HTTP shapes.

    Args:
        method: Upper-case HTTP method
        path: Request path (no query string)
        query_params: Parsed query parameters
        headers: Request headers

    Returns:
        GitOperation: First matching shape, or NOT_GIT
    """
    for operation, predicate in _PREDICATES:
        if predicate(method, path, query_params, headers):
            return operation
    return GitOperation.NOT_GIT


def is_valid_git_request(method, path, query_params, headers) -> bool:
    """Strict check: any of the six Smart HTTP predicates holds."""
    return classify(method, path, query_params, headers) is not GitOperation.NOT_GIT


@dataclass
class GitDetectionInfo:
    """
    Heuristic Detection Result

    Records which heuristics fired, for diagnostics and the non-Git info response.
    """

    is_git: bool
    detected_by: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)


def detect_git_request(
    method: str,
    path: str,
    query_params: Mapping[str, str],
    headers: Mapping[str, str],
) -> GitDetectionInfo:
    """
    Heuristic Git detection.

    A request counts as Git when any of these hold:
    1. the ``service`` query parameter names a Git service
    2. the path contains ``/info/refs`` or ``.git/``
    3. the User-Agent starts with ``git/``
    """
    detected_by: list[str] = []
    details: dict[str, Any] = {}

    service = extract_git_service(query_params)
    if service:
        detected_by.append("service")
        details["service"] = service

    matched_path = next((pattern for pattern in GIT_PATHS if pattern in path), None)
    if matched_path:
        detected_by.append("path")
        details["pathPattern"] = matched_path

    user_agent = _header(headers, "user-agent")
    matched_agent = next((pattern for pattern in GIT_USER_AGENTS if user_agent.startswith(pattern)), None)
    if matched_agent:
        detected_by.append("user-agent")
        details["userAgentPattern"] = matched_agent

    return GitDetectionInfo(is_git=bool(detected_by), detected_by=detected_by, details=details)


def is_git_request(
    method: str,
    path: str,
    query_params: Mapping[str, str],
    headers: Mapping[str, str],
    mode: str = "union",
) -> bool:
    """
    Decide whether a request should be treated as Git.

    In ``strict`` mode only the six Smart HTTP shapes count. In ``union`` mode
    the heuristic detector can also grant a Git verdict; inputs on which the
    two detectors disagree are logged for follow-up.
    """
    strict = is_valid_git_request(method, path, query_params, headers)
    if mode == "strict":
        return strict

    heuristic = detect_git_request(method, path, query_params, headers)
    if strict != heuristic.is_git:
        logger.debug(
            "Git detectors disagree: method=%s path=%s strict=%s heuristic=%s detected_by=%s",
            method,
            path,
            strict,
            heuristic.is_git,
            heuristic.detected_by,
        )
    return strict or heuristic.is_git


def extract_git_service(query_params: Mapping[str, str]) -> Optional[str]:
    """Return the requested Git service, or None when absent or unknown."""
    service = query_params.get("service")
    if service in GIT_SERVICES:
        return service
    return None


def is_git_clone_request(query_params: Mapping[str, str]) -> bool:
    """Clone and fetch negotiate through git-upload-pack."""
    return extract_git_service(query_params) == UPLOAD_PACK


def is_git_push_request(query_params: Mapping[str, str]) -> bool:
    """Push negotiates through git-receive-pack."""
    return extract_git_service(query_params) == RECEIVE_PACK
