"""
Development host for auth plugins.

Plays the part of the personium token endpoint so plugins can be tried
locally: a plugin registry, the adapter that maps plugin results to token
responses, and a FastAPI app serving ``POST /{cell}/__token``.
"""

from personium_auth_sample.host.registry import PluginRegistry
from personium_auth_sample.host.adapter import (
    GrantStatus,
    TokenOutcome,
    run_grant,
    to_error_payload,
)

__all__ = [
    "PluginRegistry",
    "GrantStatus",
    "TokenOutcome",
    "run_grant",
    "to_error_payload",
]
