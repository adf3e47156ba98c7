"""
Message catalog for plugin error messages.

Loads Java-style ``.properties`` resources shipped with the package and
formats their templates with ``{0}``, ``{1}`` ... placeholders.

Supports:
- ``key=value``, ``key: value`` and ``key value`` entries
- ``#`` and ``!`` comment lines
- Backslash line continuations
- ``\\t``, ``\\n``, ``\\r``, ``\\f`` and ``\\uXXXX`` escapes
- Locale variants (``name_ja.properties``, ``name_ja_JP.properties``)

Author: personium.io contributors
Date: 2026-10-17
"""

import logging
import re
import string
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from personium_auth_sample.exceptions import ResourceLoadError

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE = "personium_auth_sample"
RESOURCE_DIR = "resources"

# Properties files are ISO-8859-1; anything else travels as \uXXXX
PROPERTIES_ENCODING = "latin-1"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _ends_with_continuation(line: str) -> bool:
    """Check whether a line ends with an odd number of backslashes."""
    count = len(line) - len(line.rstrip("\\"))
    return count % 2 == 1


def _logical_lines(text: str) -> Iterator[str]:
    """Join continued natural lines and drop blanks and comments."""
    buffer: Optional[str] = None

    for line in _LINE_BREAK.split(text):
        stripped = line.lstrip(_WHITESPACE)

        if buffer is None and (not stripped or stripped[0] in "#!"):
            continue

        if _ends_with_continuation(stripped):
            buffer = (buffer or "") + stripped[:-1]
            continue

        yield (buffer or "") + stripped
        buffer = None

    if buffer is not None:
        yield buffer


def _split_entry(line: str) -> Tuple[str, str]:
    """Split a logical line into its raw key and raw value."""
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        index += 1

    key = line[:index]
    rest = line[index:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str) -> str:
    """Resolve backslash escapes in a key or value."""
    chars: List[str] = []
    index = 0
    length = len(text)

    while index < length:
        char = text[index]
        index += 1
        if char != "\\":
            chars.append(char)
            continue
        if index >= length:
            break

        char = text[index]
        index += 1
        if char == "u":
            digits = text[index:index + 4]
            if len(digits) != 4 or any(c not in string.hexdigits for c in digits):
                raise ValueError(f"Malformed \\uxxxx encoding in {text!r}")
            chars.append(chr(int(digits, 16)))
            index += 4
        else:
            chars.append(_ESCAPES.get(char, char))

    return "".join(chars)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse the contents of a ``.properties`` file.

    Args:
        text: Decoded file contents

    Returns:
        Mapping of key to value; later duplicates win

    Raises:
        ValueError: If an escape sequence is malformed
    """
    entries: Dict[str, str] = {}
    for line in _logical_lines(text):
        raw_key, raw_value = _split_entry(line)
        entries[_unescape(raw_key)] = _unescape(raw_value)
    return entries


def format_message(template: str, args: Sequence[Any]) -> str:
    """
    Substitute ``{n}`` placeholders in a message template.

    Text between single quotes is literal and ``''`` yields one quote.
    A placeholder without a matching argument is left as written.

    Raises:
        ValueError: If the template has unbalanced braces or a bad index
    """
    chars: List[str] = []
    index = 0
    length = len(template)
    quoted = False

    while index < length:
        char = template[index]

        if char == "'":
            if template.startswith("''", index):
                chars.append("'")
                index += 2
            else:
                quoted = not quoted
                index += 1
            continue

        if char == "{" and not quoted:
            end = template.find("}", index)
            if end == -1:
                raise ValueError(f"Unmatched braces in message template: {template!r}")
            number = template[index + 1:end].split(",", 1)[0].strip()
            if not number.isdigit():
                raise ValueError(f"Invalid argument index {number!r} in template: {template!r}")
            position = int(number)
            if position < len(args):
                chars.append(str(args[position]))
            else:
                chars.append("{" + number + "}")
            index = end + 1
            continue

        chars.append(char)
        index += 1

    return "".join(chars)


def locale_variants(resource: str, locale: Optional[str]) -> List[str]:
    """
    List resource names from least to most specific for a locale.

    >>> locale_variants("messages.properties", "ja_JP")
    ['messages.properties', 'messages_ja.properties', 'messages_ja_JP.properties']
    """
    names = [resource]
    if not locale:
        return names

    stem, dot, suffix = resource.rpartition(".")
    if not dot:
        stem, suffix = resource, ""
    suffix = f".{suffix}" if suffix else ""

    parts = [part for part in re.split(r"[_-]", locale) if part]
    for depth in range(1, min(len(parts), 2) + 1):
        tag = "_".join(parts[:depth])
        names.append(f"{stem}_{tag}{suffix}")
    return names


def _read_packaged(package: str, name: str) -> bytes:
    """Read a resource from the package's resource directory."""
    try:
        resource = resources.files(package) / RESOURCE_DIR / name
    except ModuleNotFoundError as e:
        raise FileNotFoundError(f"Package not found: {package}") from e

    with resource.open("rb") as stream:
        return stream.read()


def _read_resource(name: str, package: Optional[str], directory: Optional[Path]) -> bytes:
    if directory is not None:
        with open(directory / name, "rb") as stream:
            return stream.read()
    return _read_packaged(package or DEFAULT_PACKAGE, name)


class MessageCatalog:
    """
    Read-only mapping of message keys to templates.

    The catalog is complete when the constructor returns and is never
    modified afterwards, so one instance can be shared across threads.
    """

    def __init__(self, messages: Mapping[str, str], resource: str = "<memory>"):
        self._messages: Mapping[str, str] = MappingProxyType(dict(messages))
        self.resource = resource

    @classmethod
    def load(
        cls,
        resource: Union[str, Path],
        package: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> "MessageCatalog":
        """
        Load a catalog resource and its locale variants.

        Args:
            resource: Resource name inside the package, or a filesystem path
            package: Package holding the resource (default: this package);
                ignored when ``resource`` is a ``Path``
            locale: Optional locale such as ``ja`` or ``ja_JP``

        Returns:
            Loaded MessageCatalog

        Raises:
            ResourceLoadError: If the base resource cannot be read or parsed,
                or a present locale variant cannot be parsed
        """
        directory: Optional[Path] = None
        if isinstance(resource, Path):
            directory = resource.parent
            resource = resource.name

        messages: Dict[str, str] = {}
        for index, name in enumerate(locale_variants(resource, locale)):
            try:
                data = _read_resource(name, package, directory)
            except OSError as e:
                if index == 0:
                    raise ResourceLoadError(name, str(e)) from e
                logger.debug(f"Locale variant not available: {name}")
                continue

            try:
                messages.update(parse_properties(data.decode(PROPERTIES_ENCODING)))
            except ValueError as e:
                raise ResourceLoadError(name, str(e)) from e

        logger.info(f"Loaded {len(messages)} messages from {resource} (locale={locale or 'default'})")
        return cls(messages, resource=resource)

    @property
    def messages(self) -> Mapping[str, str]:
        return self._messages

    def __contains__(self, key: object) -> bool:
        return key in self._messages

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, key: str) -> Optional[str]:
        """Get the raw template for a key, or None."""
        return self._messages.get(key)

    def require(self, *keys: str) -> None:
        """
        Ensure the catalog defines every given key.

        Raises:
            ResourceLoadError: If any key is missing
        """
        missing = [key for key in keys if key not in self._messages]
        if missing:
            raise ResourceLoadError(
                self.resource,
                f"missing required message keys: {', '.join(missing)}"
            )

    def format(self, key: str, *args: Any) -> str:
        """
        Format the message for a key.

        Args:
            key: Message key
            *args: Positional placeholder values

        Returns:
            Formatted message; the template verbatim when no args are
            given, or the key itself when the catalog does not define it
        """
        template = self._messages.get(key)
        if template is None:
            logger.warning(f"Message key not found in {self.resource}: {key}")
            return key
        if not args:
            return template
        return format_message(template, args)
