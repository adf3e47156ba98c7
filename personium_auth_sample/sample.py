"""
Sample auth plugin.

Grant type: ``urn:x-personium:auth:sample``

Behavior:
- ``sample_password`` is ``"personium"``: authentication succeeds for the
  account given in ``sample_account``
- any other ``sample_password``: authentication fails

Example call against a cell's token endpoint::

    curl "https://{UnitFQDN}/{CellName}/__token" -X POST -i \\
        -d 'grant_type=urn:x-personium:auth:sample&sample_account=sample&sample_password=personium'

The accepted password is hard-coded on purpose. This plugin shows the
plugin contract; it is not a real authenticator.

Author: personium.io contributors
Date: 2026-10-17
"""

import logging
from typing import Optional

from personium_auth_sample.messages import MessageCatalog
from personium_auth_sample.plugin import PLUGIN_TYPE_AUTH, AuthenticatedIdentity
from personium_auth_sample.validation import (
    ERROR_REQUIRED_PARAM_MISSING,
    FormBody,
    get_single_value,
    require_body,
)

logger = logging.getLogger(__name__)


class SampleAuthPlugin:
    """
    Authenticates any account whose password is ``"personium"``.

    The message catalog is loaded once in the constructor; a catalog that
    cannot be loaded, or that lacks a required message, raises
    ``ResourceLoadError`` so the plugin never becomes available.
    """

    GRANT_TYPE = "urn:x-personium:auth:sample"
    ACCOUNT_TYPE = "auth:sample"

    KEY_ACCOUNT = "sample_account"
    KEY_PASSWORD = "sample_password"

    ACCEPTED_PASSWORD = "personium"

    MESSAGES_RESOURCE = "plugin-error-messages.properties"
    REQUIRED_MESSAGES = (ERROR_REQUIRED_PARAM_MISSING,)

    def __init__(
        self,
        locale: Optional[str] = None,
        messages_resource: Optional[str] = None,
        catalog: Optional[MessageCatalog] = None,
    ):
        """
        Initialize the plugin.

        Args:
            locale: Locale of the error messages (e.g. "ja"), default English
            messages_resource: Catalog resource name inside the package
            catalog: Pre-loaded catalog; takes precedence over the other arguments

        Raises:
            ResourceLoadError: If the message catalog cannot be used
        """
        if catalog is None:
            catalog = MessageCatalog.load(
                messages_resource or self.MESSAGES_RESOURCE,
                locale=locale,
            )
        catalog.require(*self.REQUIRED_MESSAGES)
        self._catalog = catalog

    @property
    def catalog(self) -> MessageCatalog:
        return self._catalog

    def category(self) -> str:
        return PLUGIN_TYPE_AUTH

    def grant_type(self) -> str:
        return self.GRANT_TYPE

    def account_type(self) -> str:
        return self.ACCOUNT_TYPE

    def authenticate(self, body: Optional[FormBody]) -> Optional[AuthenticatedIdentity]:
        """
        Authenticate a token request.

        Args:
            body: Decoded form body

        Returns:
            AuthenticatedIdentity for ``sample_account`` if the password
            matches, None otherwise

        Raises:
            InvalidRequestError: If the body or a required parameter is
                missing or empty
        """
        body = require_body(body, self._catalog)

        account = get_single_value(body, self.KEY_ACCOUNT, self._catalog)
        password = get_single_value(body, self.KEY_PASSWORD, self._catalog)

        if password != self.ACCEPTED_PASSWORD:
            # None is treated as authentication failure by the host
            logger.debug(f"Authentication rejected for account: {account}")
            return None

        logger.debug(f"Authentication succeeded for account: {account}")
        return AuthenticatedIdentity(
            account_name=account,
            account_type=self.ACCOUNT_TYPE,
        )

    def __repr__(self) -> str:
        return f"SampleAuthPlugin(grant_type={self.GRANT_TYPE!r})"
