"""
Request body validation for auth plugins.

The host hands plugins the decoded form body of the token request: a
mapping of parameter name to the ordered list of submitted values.
"""

from typing import Mapping, Optional, Sequence

from personium_auth_sample.exceptions import InvalidRequestError
from personium_auth_sample.messages import MessageCatalog

FormBody = Mapping[str, Sequence[Optional[str]]]

# Message key: required parameter missing
ERROR_REQUIRED_PARAM_MISSING = "error.required.param.missing"

# Argument used when the whole body is missing
BODY_PARAM = "Body"


def missing_parameter(catalog: MessageCatalog, param: str) -> InvalidRequestError:
    """Build the error for a missing or empty parameter."""
    return InvalidRequestError(
        catalog.format(ERROR_REQUIRED_PARAM_MISSING, param),
        param=param
    )


def require_body(body: Optional[FormBody], catalog: MessageCatalog) -> FormBody:
    """
    Ensure a request body was supplied.

    Raises:
        InvalidRequestError: If the body is None or empty
    """
    if not body:
        raise missing_parameter(catalog, BODY_PARAM)
    return body


def get_single_value(body: FormBody, key: str, catalog: MessageCatalog) -> str:
    """
    Get the first value of a required parameter.

    Extra values are ignored. A missing parameter and an empty one are
    the same error.

    Args:
        body: Decoded form body
        key: Parameter name
        catalog: Catalog used to localize the error message

    Returns:
        First value, unchanged

    Raises:
        InvalidRequestError: If the parameter is absent or its first value is empty
    """
    values = body.get(key)
    if not values:
        raise missing_parameter(catalog, key)

    value = values[0]
    if not value:
        raise missing_parameter(catalog, key)
    return value
