"""
Remote client plugins package.

Client plugins talk to a cloud provider's snapshot API on behalf of the
snapshot reconciler.
"""

from plugins.clients.base import RemoteClient

__all__ = ["RemoteClient"]
