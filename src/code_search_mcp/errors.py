"""
Error types for the code search server.
"""

from typing import Any, Optional


class CodeSearchError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class SessionError(CodeSearchError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class ClientProtocolError(CodeSearchError):
    """A call that needs an established session arrived without a usable one."""

    def __init__(self, message: str, code: str = "session_required", status_code: int = 400):
        super().__init__(code, message)
        self.status_code = status_code


class ValidationError(CodeSearchError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("invalid_params", message, details)


class UpstreamError(CodeSearchError):
    def __init__(
        self,
        message: str,
        code: str = "http_error",
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code, message, details)
        self.status_code = status_code


class TransportWriteError(CodeSearchError):
    def __init__(self, message: str):
        super().__init__("send_failed", message)
