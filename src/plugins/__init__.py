"""
Plugin system for the snapshot reconciler.

This package provides the plugin architecture for remote clients and
reconcilers.
"""

from plugins.base import LifecycleState, ResourceData
from plugins.reconcilers.base import ReconcilerPlugin, ReconcileResult
from plugins.registry import PluginRegistry, get_registry

__all__ = [
    "LifecycleState",
    "ResourceData",
    "ReconcilerPlugin",
    "ReconcileResult",
    "PluginRegistry",
    "get_registry",
]
