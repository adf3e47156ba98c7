"""
Auth plugin contract.

Any object providing ``category``, ``grant_type``, ``account_type`` and
``authenticate`` is an auth plugin; no base class is required.

Author: personium.io contributors
Date: 2026-10-17
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional, Protocol, runtime_checkable

from personium_auth_sample.validation import FormBody

# Plugin category for authentication plugins
PLUGIN_TYPE_AUTH = "auth"


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity returned by a plugin when authentication succeeds."""

    account_name: str
    account_type: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@runtime_checkable
class AuthPlugin(Protocol):
    """Protocol for grant-type authentication plugins.

    Implementations must be safe to call from many threads at once.
    """

    def category(self) -> str:
        """Plugin category. Only ``"auth"`` exists today."""
        ...

    def grant_type(self) -> str:
        """Value of ``grant_type`` on the token endpoint this plugin serves."""
        ...

    def account_type(self) -> str:
        """Account type this plugin authenticates.

        Can be given as the account ``Type`` when creating accounts.
        """
        ...

    def authenticate(self, body: Optional[FormBody]) -> Optional[AuthenticatedIdentity]:
        """Authenticate a token request.

        Args:
            body: Decoded form body of the token request.

        Returns:
            An ``AuthenticatedIdentity`` on success, ``None`` when the
            credentials are rejected.

        Raises:
            AuthPluginError: If the request itself is invalid.
        """
        ...
