"""
Plugin exception hierarchy.

Errors raised by auth plugins and by the components that load them. Every
error carries an HTTP status hint so the embedding host can answer the
token request without knowing the concrete plugin.

Author: personium.io contributors
Date: 2026-10-17
"""

from typing import Any, Dict, Optional


class PluginError(Exception):
    """
    Base exception for plugin errors.

    Attributes:
        message: Human-readable (localized) error message
        status_code: HTTP status hint for the host
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.__class__.status_code


class ResourceLoadError(PluginError):
    """Raised when a plugin resource (message catalog) cannot be loaded."""

    def __init__(self, resource: str, reason: str):
        super().__init__(f"Failed to load resource '{resource}': {reason}")
        self.resource = resource
        self.reason = reason


class PluginLoadError(PluginError):
    """Raised when a plugin cannot be imported or constructed."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"Failed to load plugin '{target}': {reason}")
        self.target = target
        self.reason = reason


class AuthPluginError(PluginError):
    """Base exception for authentication plugin errors."""

    error_code: str = "server_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message, status_code)
        self.error_code = error_code or self.__class__.error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to an OAuth 2.0 error body."""
        return {
            "error": self.error_code,
            "error_description": self.message,
        }


class InvalidRequestError(AuthPluginError):
    """Raised when a required request parameter is missing or empty (400)."""

    status_code = 400
    error_code = "invalid_request"

    def __init__(self, message: str, param: Optional[str] = None):
        super().__init__(message)
        self.param = param
