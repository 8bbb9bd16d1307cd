"""
Remote Client Base - Abstract interface for snapshot API clients.

Client plugins talk to a cloud provider's snapshot API. Reconcilers
receive an initialized client at construction and never look one up
from global state.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from plugins.base import RemoteSnapshot, SnapshotRequest


class RemoteClient(ABC):
    """
    Abstract base class for remote snapshot clients.

    Implementations raise ``errors.RemoteNotFound`` when the object does
    not exist, ``errors.TransientRemoteError`` for failures that are safe
    to retry, and ``errors.RemoteAPIError`` for everything else.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this client (e.g., 'civo')."""
        pass

    @property
    @abstractmethod
    def version(self) -> str:
        """Client version string."""
        pass

    @abstractmethod
    async def initialize(self, config: Dict[str, Any]) -> None:
        """
        Initialize the client with configuration.

        Args:
            config: Client-specific configuration dictionary
        """
        pass

    @abstractmethod
    async def create_snapshot(
        self, name: str, request: SnapshotRequest
    ) -> RemoteSnapshot:
        """
        Request creation of a snapshot.

        Args:
            name: The snapshot name chosen by the caller
            request: Source instance, safe flag and optional cron schedule

        Returns:
            The remote object; its ``id`` becomes the resource identity.
        """
        pass

    @abstractmethod
    async def find_snapshot(self, snapshot_id: str) -> RemoteSnapshot:
        """
        Fetch the current remote state of a snapshot.

        Args:
            snapshot_id: The remote-assigned snapshot ID

        Returns:
            The remote snapshot object.
        """
        pass

    @abstractmethod
    async def delete_snapshot(self, snapshot_id: str) -> None:
        """
        Delete a snapshot.

        Args:
            snapshot_id: The remote-assigned snapshot ID
        """
        pass

    @classmethod
    def load_config_from_env(cls) -> Dict[str, Any]:
        """
        Load client-specific configuration from environment variables.

        Override this method in subclasses to define how the client
        loads its configuration from the environment.

        Returns:
            Dictionary of configuration values for this client.
        """
        return {}
