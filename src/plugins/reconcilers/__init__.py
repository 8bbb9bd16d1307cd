"""
Reconciler plugins package.

Reconciler plugins own the lifecycle of one or more resource types.
They are discovered via Python entry points (group: 'snapshot_reconciler.reconcilers').
"""

from plugins.reconcilers.base import ReconcilerPlugin, ReconcileResult

__all__ = ["ReconcilerPlugin", "ReconcileResult"]
