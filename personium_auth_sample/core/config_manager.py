"""
Configuration management for the plugin host harness.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, List
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "PERSONIUM_"


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Supported log output formats."""
    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = Field(default=5, ge=0)
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'personium_auth_sample.sample': 'DEBUG'}"
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "127.0.0.1"
    port: int = Field(default=9090, ge=1, le=65535)


class MessagesConfig(BaseModel):
    """Error message catalog configuration."""
    resource: str = "plugin-error-messages.properties"
    locale: Optional[str] = Field(
        default=None,
        description="Locale of plugin error messages, e.g. 'ja' or 'ja_JP'"
    )


class PluginHostConfig(BaseModel):
    """Main plugin host configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    server: ServerConfig = Field(default_factory=ServerConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    messages: MessagesConfig = Field(default_factory=MessagesConfig)

    plugins: List[str] = Field(
        default_factory=list,
        description="Plugin classes to load, as 'module:Class' paths"
    )

    discover: bool = Field(
        default=True,
        description="Load plugins registered under the 'personium.plugins' entry point group"
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    @field_validator("plugins")
    @classmethod
    def validate_plugins(cls, v: List[str]) -> List[str]:
        """Validate plugin paths."""
        for path in v:
            module, _, attr = path.partition(":")
            if not module or not attr:
                raise ValueError(f"Plugin path must be in format 'module:Class': {path}")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages plugin host configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (PERSONIUM_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[PluginHostConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> PluginHostConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated PluginHostConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading plugin host configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = PluginHostConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Server configuration
        if host := os.getenv(f"{ENV_PREFIX}HOST"):
            config.setdefault("server", {})["host"] = host
        if port := os.getenv(f"{ENV_PREFIX}PORT"):
            config.setdefault("server", {})["port"] = int(port)

        # Logging configuration
        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        # Message catalog configuration
        if locale := os.getenv(f"{ENV_PREFIX}MESSAGE_LOCALE"):
            config.setdefault("messages", {})["locale"] = locale

        # Plugins
        if plugins := os.getenv(f"{ENV_PREFIX}PLUGINS"):
            config["plugins"] = [p.strip() for p in plugins.split(",") if p.strip()]
        if discover := os.getenv(f"{ENV_PREFIX}DISCOVER_PLUGINS"):
            config["discover"] = discover.lower() in ['true', '1', 'yes']

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration."""
        if not self._config:
            return

        config_dict = self._config.model_dump()
        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> PluginHostConfig:
        """
        Get the loaded configuration.

        Returns:
            PluginHostConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> PluginHostConfig:
        """
        Reload configuration from the same sources.

        Returns:
            Reloaded PluginHostConfig instance
        """
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
