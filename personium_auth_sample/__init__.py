"""
personium-auth-sample: sample auth plugin for personium.

Implements the ``urn:x-personium:auth:sample`` grant type, which accepts
any account whose password is ``personium``.
"""

__version__ = "0.1.0"

from personium_auth_sample.exceptions import (
    PluginError,
    AuthPluginError,
    InvalidRequestError,
    ResourceLoadError,
    PluginLoadError,
)
from personium_auth_sample.messages import MessageCatalog
from personium_auth_sample.plugin import AuthPlugin, AuthenticatedIdentity, PLUGIN_TYPE_AUTH
from personium_auth_sample.sample import SampleAuthPlugin

__all__ = [
    "__version__",
    # Plugin contract
    "AuthPlugin",
    "AuthenticatedIdentity",
    "PLUGIN_TYPE_AUTH",
    "SampleAuthPlugin",
    "MessageCatalog",
    # Exceptions
    "PluginError",
    "AuthPluginError",
    "InvalidRequestError",
    "ResourceLoadError",
    "PluginLoadError",
]
