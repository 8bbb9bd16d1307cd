"""
Plugin Registry - Discovery and registration of plugins.

This module provides the central registry for remote client plugins and
reconciler plugins, handling discovery, registration, and instantiation.
"""

import logging
from importlib.metadata import entry_points
from typing import Any, Dict, List, Optional, Type

from plugins.clients.base import RemoteClient
from plugins.reconcilers.base import ReconcilerPlugin

logger = logging.getLogger(__name__)

RECONCILER_ENTRY_POINT_GROUP = "snapshot_reconciler.reconcilers"


class PluginRegistry:
    """
    Central registry for all plugins.

    Client plugins are instantiated and initialized once. Reconciler
    plugins are instantiated with the initialized client they name in
    their ``client_plugin`` attribute.
    """

    def __init__(self):
        # Registered plugin classes (not instantiated)
        self._client_plugins: Dict[str, Type[RemoteClient]] = {}
        self._reconciler_plugins: Dict[str, Type[ReconcilerPlugin]] = {}

        # Cached plugin metadata to avoid repeated instantiation
        self._client_plugin_info: Dict[str, Dict[str, str]] = {}
        self._reconciler_plugin_info: Dict[str, Dict[str, Any]] = {}

        # Instantiated and initialized plugin instances
        self._client_instances: Dict[str, RemoteClient] = {}
        self._reconciler_instances: Dict[str, ReconcilerPlugin] = {}

        # Client configurations loaded from environment
        self._client_plugin_configs: Dict[str, Dict[str, Any]] = {}

        # Mapping from resource type name to reconciler plugin name
        self._resource_type_to_reconciler: Dict[str, str] = {}

    # Registration methods

    def register_client_plugin(self, plugin_class: Type[RemoteClient]) -> None:
        """
        Register a remote client plugin class.

        Args:
            plugin_class: The RemoteClient subclass to register
        """
        # Create temporary instance to get name/version (only once at registration)
        temp_instance = plugin_class()
        name = temp_instance.name
        version = temp_instance.version

        if name in self._client_plugins:
            logger.warning(f"Overwriting existing client plugin: {name}")

        self._client_plugins[name] = plugin_class
        self._client_plugin_info[name] = {"name": name, "version": version}
        self._client_plugin_configs[name] = plugin_class.load_config_from_env()
        logger.info(f"Registered client plugin: {name} v{version}")

    def register_reconciler_plugin(
        self, plugin_class: Type[ReconcilerPlugin]
    ) -> None:
        """
        Register a reconciler plugin class.

        Reconcilers need their client at construction, so ``name``,
        ``resource_types`` and ``client_plugin`` are read from the class.

        Args:
            plugin_class: The ReconcilerPlugin subclass to register

        Raises:
            ValueError: If the class metadata is missing or a resource type
                is already claimed by another reconciler
        """
        name = getattr(plugin_class, "name", None)
        resource_types = getattr(plugin_class, "resource_types", None)
        client_plugin = getattr(plugin_class, "client_plugin", None)

        if not isinstance(name, str) or not isinstance(resource_types, list):
            raise ValueError(
                f"Reconciler {plugin_class.__name__} must declare 'name' and "
                f"'resource_types' as class attributes"
            )
        if not client_plugin:
            raise ValueError(
                f"Reconciler '{name}' does not declare a client_plugin"
            )

        if name in self._reconciler_plugins:
            logger.warning(f"Overwriting existing reconciler plugin: {name}")

        # Check for resource type conflicts
        for rt in resource_types:
            existing = self._resource_type_to_reconciler.get(rt)
            if existing and existing != name:
                raise ValueError(
                    f"Resource type '{rt}' is already claimed by "
                    f"reconciler '{existing}'. Cannot register '{name}'."
                )

        self._reconciler_plugins[name] = plugin_class
        self._reconciler_plugin_info[name] = {
            "name": name,
            "resource_types": list(resource_types),
            "client_plugin": client_plugin,
        }

        for rt in resource_types:
            self._resource_type_to_reconciler[rt] = name

        logger.info(
            f"Registered reconciler plugin: {name} "
            f"(resource types: {', '.join(resource_types)}, client: {client_plugin})"
        )

    # Instantiation methods

    async def get_client_plugin(
        self, name: str, config: Optional[Dict[str, Any]] = None
    ) -> RemoteClient:
        """
        Get an initialized client plugin instance.

        Args:
            name: The plugin name to retrieve
            config: Optional configuration to pass to initialize(). Defaults
                to the configuration loaded from the environment.

        Returns:
            An initialized RemoteClient instance

        Raises:
            ValueError: If the plugin name is not registered
        """
        if name not in self._client_plugins:
            available = ", ".join(self._client_plugins.keys()) or "none"
            raise ValueError(
                f"Unknown client plugin: {name}. Available plugins: {available}"
            )

        if name not in self._client_instances:
            plugin = self._client_plugins[name]()
            if config is None:
                config = self.get_client_plugin_config(name)
            await plugin.initialize(config)
            self._client_instances[name] = plugin
            logger.info(f"Initialized client plugin: {name}")

        return self._client_instances[name]

    async def get_reconciler_plugin(
        self,
        name: str,
        client_config: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> ReconcilerPlugin:
        """
        Get a reconciler plugin instance wired to its client.

        Args:
            name: The reconciler plugin name
            client_config: Optional configuration for the client plugin
            **kwargs: Extra constructor arguments for the reconciler

        Returns:
            A ReconcilerPlugin instance

        Raises:
            ValueError: If the reconciler name is not registered
        """
        if name not in self._reconciler_plugins:
            available = ", ".join(self._reconciler_plugins.keys()) or "none"
            raise ValueError(
                f"Unknown reconciler plugin: {name}. "
                f"Available reconcilers: {available}"
            )

        if name not in self._reconciler_instances:
            plugin_class = self._reconciler_plugins[name]
            client = await self.get_client_plugin(
                plugin_class.client_plugin, client_config
            )
            self._reconciler_instances[name] = plugin_class(client, **kwargs)
            logger.info(f"Instantiated reconciler plugin: {name}")

        return self._reconciler_instances[name]

    async def get_reconciler_for_resource_type(
        self, resource_type_name: str, **kwargs: Any
    ) -> Optional[ReconcilerPlugin]:
        """
        Get the reconciler instance for a resource type.

        Args:
            resource_type_name: The resource type name

        Returns:
            A ReconcilerPlugin instance, or None if no reconciler handles it
        """
        reconciler_name = self._resource_type_to_reconciler.get(resource_type_name)
        if reconciler_name is None:
            return None
        return await self.get_reconciler_plugin(reconciler_name, **kwargs)

    # Discovery methods

    def list_client_plugins(self) -> List[str]:
        """List all registered client plugin names."""
        return list(self._client_plugins.keys())

    def list_reconciler_plugins(self) -> List[str]:
        """List all registered reconciler plugin names."""
        return list(self._reconciler_plugins.keys())

    def has_client_plugin(self, name: str) -> bool:
        """Check if a client plugin is registered."""
        return name in self._client_plugins

    def has_reconciler_for_resource_type(self, resource_type_name: str) -> bool:
        """Check if any reconciler handles the given resource type."""
        return resource_type_name in self._resource_type_to_reconciler

    def get_client_plugin_info(self, name: str) -> Optional[Dict[str, str]]:
        """Get 'name' and 'version' of a registered client plugin."""
        return self._client_plugin_info.get(name)

    def get_reconciler_plugin_info(self, name: str) -> Optional[Dict[str, Any]]:
        """Get 'name', 'resource_types' and 'client_plugin' of a reconciler."""
        return self._reconciler_plugin_info.get(name)

    def get_client_plugin_config(self, name: str) -> Dict[str, Any]:
        """Get a copy of the environment-loaded configuration for a client."""
        return dict(self._client_plugin_configs.get(name, {}))


# Global registry instance
_registry: Optional[PluginRegistry] = None


def get_registry() -> PluginRegistry:
    """Get the global plugin registry singleton."""
    global _registry
    if _registry is None:
        _registry = PluginRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def register_builtin_plugins() -> None:
    """
    Register the built-in Civo client and snapshot reconciler, then
    discover any other installed reconciler plugins via entry points.
    """
    registry = get_registry()

    from plugins.clients.civo import CivoClient
    from plugins.reconcilers.snapshot import SnapshotReconciler

    registry.register_client_plugin(CivoClient)
    registry.register_reconciler_plugin(SnapshotReconciler)

    discovered = entry_points(group=RECONCILER_ENTRY_POINT_GROUP)
    for ep in discovered:
        try:
            reconciler_class = ep.load()
            registry.register_reconciler_plugin(reconciler_class)
        except Exception as e:
            logger.warning(f"Could not load reconciler plugin {ep.name}: {e}")
