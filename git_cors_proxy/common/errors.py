"""
Error Definitions

Defines the proxy's exception classes. Every class maps to one terminal HTTP
status; bodies are deliberately terse and never carry upstream details.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, code and status.
    """

    def __init__(
        self,
        message: str,
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message, returned to the client as-is
            code: Error code
            details: Extra error details, logged but never returned
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code


class OriginRejectedError(AppError):
    """
    Origin Rejected Error

    Raised when the Origin header is not in the allow-list or cannot be parsed.
    """

    def __init__(
        self,
        message: str = "Forbidden - Origin not allowed",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="origin_not_allowed",
            details=details,
            status_code=403,
        )


class NotGitRequestError(AppError):
    """
    Not a Git Request Error

    Raised for POST and OPTIONS requests that match no Git Smart HTTP shape.
    """

    def __init__(
        self,
        message: str = "Forbidden - Not a Git request",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="not_git_request",
            details=details,
            status_code=403,
        )


class MalformedProxyUrlError(AppError):
    """
    Malformed Proxy URL Error

    Raised when the request path is not of the form /domain.com/path/to/repo.
    """

    def __init__(self, path: str):
        super().__init__(
            message=f'Invalid proxy URL format. Got: "{path}". Expected: /domain.com/path/to/repo',
            code="invalid_proxy_url",
            details={"path": path},
            status_code=400,
        )


class UpstreamFailureError(AppError):
    """
    Upstream Failure Error

    Raised when the upstream Git host cannot be reached (DNS, connection, timeout).
    """

    def __init__(
        self,
        message: str = "Internal proxy error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="upstream_error",
            details=details,
            status_code=500,
        )
