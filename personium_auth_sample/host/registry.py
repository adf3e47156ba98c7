"""
Auth plugin registry.

Holds the auth plugins available to the token endpoint, keyed by the grant
type each one serves. Plugins are found through Python entry points or
loaded from explicit ``module:Class`` paths.

Author: personium.io contributors
Date: 2026-10-17
"""

import importlib
import logging
from importlib.metadata import entry_points
from typing import Any, Dict, Iterator, List, Optional

from personium_auth_sample.exceptions import PluginLoadError, ResourceLoadError
from personium_auth_sample.plugin import PLUGIN_TYPE_AUTH, AuthPlugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Registry of auth plugins by grant type.

    Plugins are registered at startup and only read afterwards, so lookups
    need no locking.
    """

    ENTRYPOINT_GROUP = "personium.plugins"

    def __init__(self, plugin_options: Optional[Dict[str, Any]] = None):
        """
        Initialize the registry.

        Args:
            plugin_options: Keyword arguments passed to plugin constructors
        """
        self._plugin_options = plugin_options or {}
        self._plugins: Dict[str, AuthPlugin] = {}

    def register(self, plugin: Any) -> AuthPlugin:
        """
        Register a constructed plugin.

        Args:
            plugin: Object implementing the AuthPlugin protocol

        Returns:
            The registered plugin

        Raises:
            TypeError: If the object is not an auth plugin
            ValueError: If its grant type is already registered
        """
        if not isinstance(plugin, AuthPlugin):
            raise TypeError(f"{plugin!r} does not implement the auth plugin contract")
        if plugin.category() != PLUGIN_TYPE_AUTH:
            raise TypeError(f"{plugin!r} has unsupported plugin type: {plugin.category()}")

        grant_type = plugin.grant_type()
        if grant_type in self._plugins:
            raise ValueError(f"Grant type '{grant_type}' is already registered")

        self._plugins[grant_type] = plugin
        logger.info(
            f"Registered plugin {type(plugin).__name__}: "
            f"grant_type={grant_type}, account_type={plugin.account_type()}"
        )
        return plugin

    def _instantiate(self, target: str, factory: Any) -> Any:
        try:
            return factory(**self._plugin_options)
        except ResourceLoadError:
            raise
        except Exception as e:
            raise PluginLoadError(target, str(e)) from e

    def _construct(self, target: str, factory: Any) -> AuthPlugin:
        plugin = self._instantiate(target, factory)
        try:
            return self.register(plugin)
        except (TypeError, ValueError) as e:
            raise PluginLoadError(target, str(e)) from e

    def load(self, path: str) -> AuthPlugin:
        """
        Import, construct and register a plugin class.

        Args:
            path: Plugin class as 'module:Class'

        Returns:
            The registered plugin

        Raises:
            PluginLoadError: If the class cannot be imported, constructed or registered
            ResourceLoadError: If the plugin's resources cannot be loaded
        """
        module_name, _, attr = path.partition(":")
        if not module_name or not attr:
            raise PluginLoadError(path, "expected 'module:Class'")

        try:
            module = importlib.import_module(module_name)
            factory = getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise PluginLoadError(path, str(e)) from e

        return self._construct(path, factory)

    def discover(self, group: str = ENTRYPOINT_GROUP) -> List[AuthPlugin]:
        """
        Load plugins registered as entry points.

        Plugins registered with:
        [project.entry-points."personium.plugins"]
        sample = "personium_auth_sample.sample:SampleAuthPlugin"

        A plugin that fails to load is logged and skipped. Grant types
        that are already registered keep their existing plugin.

        Returns:
            Plugins registered by this call
        """
        logger.info(f"Discovering plugins in entry point group '{group}'")
        loaded: List[AuthPlugin] = []

        for ep in entry_points(group=group):
            try:
                plugin = self._instantiate(ep.value, ep.load())
                if isinstance(plugin, AuthPlugin) and plugin.grant_type() in self._plugins:
                    logger.info(f"Grant type {plugin.grant_type()} already registered, skipping '{ep.name}'")
                    continue
                try:
                    loaded.append(self.register(plugin))
                except (TypeError, ValueError) as e:
                    raise PluginLoadError(ep.value, str(e)) from e
            except (PluginLoadError, ResourceLoadError) as e:
                logger.error(f"Failed to load plugin from entry point '{ep.name}': {e}")
            except Exception as e:
                logger.error(f"Failed to import plugin from entry point '{ep.name}': {e}")

        logger.info(f"Plugin discovery complete. Found {len(loaded)} plugin(s)")
        return loaded

    def get(self, grant_type: str) -> Optional[AuthPlugin]:
        """Get the plugin serving a grant type, or None."""
        return self._plugins.get(grant_type)

    def grant_types(self) -> List[str]:
        """List registered grant types."""
        return sorted(self._plugins)

    def __contains__(self, grant_type: object) -> bool:
        return grant_type in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[AuthPlugin]:
        return iter(self._plugins.values())
