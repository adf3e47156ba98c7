"""Core module initialization."""

from .config_manager import ConfigManager, PluginHostConfig
from .logging_config import setup_logging, request_key_scope

__all__ = [
    "ConfigManager",
    "PluginHostConfig",
    "setup_logging",
    "request_key_scope",
]
