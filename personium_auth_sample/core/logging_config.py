"""
Logging for the plugin host harness.

Records carry the request key of the token request being served
(X-Personium-RequestKey, or a generated one) and never carry credentials:
password-like form parameters are redacted in messages and in structured
context alike.
"""

import logging
import logging.handlers
import json
import sys
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from contextvars import ContextVar

REDACTED = "***REDACTED***"

request_key: ContextVar[Optional[str]] = ContextVar("request_key", default=None)

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {None: 1, "B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


def _is_secret_key(key: str) -> bool:
    return "password" in key.lower() or key.lower() == "authorization"


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from messages and structured context."""

    PATTERNS = [
        (re.compile(r"(Authorization:\s+)(?:Bearer\s+|Basic\s+)?\S+", re.IGNORECASE), rf"\1{REDACTED}"),
        (re.compile(r"(\b\w*password=)[^&\s]+", re.IGNORECASE), rf"\1{REDACTED}"),
        (re.compile(r"(\b\w*password[\"']?\s*:\s*[\"']?)[^\"'\s,}]+", re.IGNORECASE), rf"\1{REDACTED}"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.PATTERNS:
                record.msg = pattern.sub(replacement, record.msg)

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = {
                key: REDACTED if _is_secret_key(str(key)) else value
                for key, value in context.items()
            }
        return True


class RequestKeyFilter(logging.Filter):
    """Stamp each record with the request key of the current request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_key = request_key.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if key := request_key.get():
            log_data["request_key"] = key

        if hasattr(record, "context"):
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Catalog messages may be Japanese
        return json.dumps(log_data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s [%(request_key)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_key"):
            record.request_key = request_key.get() or "-"
        text = super().format(record)
        if getattr(record, "context", None):
            text += " " + " ".join(f"{k}={v}" for k, v in record.context.items())
        return text


def parse_size(size: str) -> int:
    """
    Parse a rotation size such as "10MB" or "512 kb" into bytes.

    Raises:
        ValueError: If the size cannot be parsed
    """
    match = _SIZE_PATTERN.match(size)
    if not match:
        raise ValueError(f"Invalid size: {size!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[unit.upper() if unit else None])


def _build_handlers(
    formatter: logging.Formatter,
    log_file: Optional[str],
    rotation_size: str,
    rotation_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=parse_size(rotation_size),
            backupCount=rotation_count,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        handler.addFilter(RequestKeyFilter())
        handler.addFilter(SensitiveDataFilter())
    return handlers


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configure root logging for the plugin host.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_file: Optional file path; rotated by size
        rotation_size: Size limit per log file (e.g. "10MB")
        rotation_count: Number of rotated log files to keep
        module_levels: Per-logger levels,
                      e.g. {"personium_auth_sample.sample": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    for handler in _build_handlers(formatter, log_file, rotation_size, rotation_count):
        root_logger.addHandler(handler)

    for module_name, module_level in (module_levels or {}).items():
        logging.getLogger(module_name).setLevel(getattr(logging, module_level.upper()))

    root_logger.info(
        f"Logging configured: level={level}, format={format_type}, file={log_file or '-'}"
    )


@contextmanager
def request_key_scope(key: str) -> Iterator[str]:
    """Bind a request key to log records emitted inside the block."""
    token = request_key.set(key)
    try:
        yield key
    finally:
        request_key.reset(token)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log a message with structured context.

    Context keys that look like credentials are redacted by the handlers.
    """
    extra = {"context": context} if context else {}
    logger.log(level, message, extra=extra)
