"""
Error types for the xfetch package.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error payload format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class XFetchError(Exception):
    """Base exception for xfetch."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error payload."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(XFetchError):
    """Builder used without a required setting, or reused after build."""

    def __init__(self, message: str = "Invalid builder configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class InvalidParameterError(XFetchError, ValueError):
    """Out-of-range or wrongly typed parameter."""

    def __init__(self, message: str = "Invalid parameter", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_PARAMETER", message, details)
