"""
Host-side adapter between token requests and auth plugins.

Turns the three possible plugin results (identity, rejection, plugin
error) into a single outcome the token endpoint can render.

Author: personium.io contributors
Date: 2026-10-17
"""

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from personium_auth_sample.core.logging_config import log_with_context
from personium_auth_sample.exceptions import AuthPluginError, PluginError
from personium_auth_sample.host.registry import PluginRegistry
from personium_auth_sample.plugin import AuthenticatedIdentity

logger = logging.getLogger(__name__)

GRANT_TYPE_PARAM = "grant_type"


class GrantStatus(str, Enum):
    """Outcome of a grant request."""
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    BAD_REQUEST = "bad_request"


class TokenOutcome(BaseModel):
    """Result of running a grant request through a plugin."""

    status: GrantStatus
    status_code: int = 200
    grant_type: Optional[str] = None
    account_name: Optional[str] = None
    account_type: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @property
    def authenticated(self) -> bool:
        return self.status == GrantStatus.AUTHENTICATED

    def response_body(self) -> Dict[str, Any]:
        """Body of the HTTP response for this outcome."""
        if self.authenticated:
            return {
                "account_name": self.account_name,
                "account_type": self.account_type,
                "grant_type": self.grant_type,
            }
        return {
            "error": self.error,
            "error_description": self.error_description,
        }


def to_error_payload(exc: PluginError) -> Dict[str, Any]:
    """
    Map a plugin error to an OAuth 2.0 error body.

    Auth plugin errors keep their own error code; other plugin errors are
    reported as ``server_error``.
    """
    if isinstance(exc, AuthPluginError):
        return exc.to_dict()
    return {"error": "server_error", "error_description": exc.message}


def _rejected(grant_type: str) -> TokenOutcome:
    return TokenOutcome(
        status=GrantStatus.REJECTED,
        status_code=400,
        grant_type=grant_type,
        error="invalid_grant",
        error_description="Authentication failed.",
    )


def _bad_request(error: str, description: str, grant_type: Optional[str] = None) -> TokenOutcome:
    return TokenOutcome(
        status=GrantStatus.BAD_REQUEST,
        status_code=400,
        grant_type=grant_type,
        error=error,
        error_description=description,
    )


def freeze_body(body: Mapping[str, Sequence[Optional[str]]]) -> Mapping[str, Sequence[Optional[str]]]:
    """Read-only copy of a form body, so plugins cannot change it."""
    return MappingProxyType({key: tuple(values) for key, values in body.items()})


def run_grant(
    registry: PluginRegistry,
    body: Optional[Mapping[str, Sequence[Optional[str]]]],
) -> TokenOutcome:
    """
    Authenticate a token request with the plugin for its grant type.

    Args:
        registry: Registered plugins
        body: Decoded form body including ``grant_type``

    Returns:
        TokenOutcome describing success, rejection or a bad request

    Raises:
        PluginError: If the plugin fails with a non-auth plugin error
    """
    body = freeze_body(body or {})

    grant_values = body.get(GRANT_TYPE_PARAM) or ()
    grant_type = grant_values[0] if grant_values else None
    if not grant_type:
        return _bad_request("invalid_request", f"Required parameter [{GRANT_TYPE_PARAM}] missing.")

    plugin = registry.get(grant_type)
    if plugin is None:
        logger.info(f"No plugin for grant type: {grant_type}")
        return _bad_request(
            "unsupported_grant_type",
            f"Unsupported grant type: {grant_type}",
            grant_type=grant_type,
        )

    try:
        identity = plugin.authenticate(body)
    except AuthPluginError as e:
        log_with_context(
            logger, logging.INFO, "Plugin rejected request as invalid",
            grant_type=grant_type, error_code=e.error_code, status_code=e.status_code,
        )
        return TokenOutcome(
            status=GrantStatus.BAD_REQUEST,
            status_code=e.status_code,
            grant_type=grant_type,
            **e.to_dict(),
        )

    if identity is None:
        log_with_context(logger, logging.INFO, "Authentication failed", grant_type=grant_type)
        return _rejected(grant_type)

    if not isinstance(identity, AuthenticatedIdentity):
        logger.warning(
            f"Plugin for {grant_type} returned {type(identity).__name__}, "
            f"expected AuthenticatedIdentity or None"
        )
        return _rejected(grant_type)

    if identity.account_type != plugin.account_type():
        logger.warning(
            f"Plugin for {grant_type} returned account type {identity.account_type}, "
            f"expected {plugin.account_type()}"
        )
        return _rejected(grant_type)

    log_with_context(
        logger, logging.INFO, "Authentication succeeded",
        grant_type=grant_type, account_name=identity.account_name,
    )
    return TokenOutcome(
        status=GrantStatus.AUTHENTICATED,
        grant_type=grant_type,
        account_name=identity.account_name,
        account_type=identity.account_type,
    )
