"""
LogLab error types.
"""

from typing import Any, Optional


class LogLabError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class SessionError(LogLabError):
    def __init__(self, message: str, code: str = "session_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class ConnectionError(LogLabError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class SourceError(LogLabError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("source_error", message, details)
