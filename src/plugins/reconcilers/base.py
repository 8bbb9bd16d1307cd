"""
Reconciler Plugin Base - Abstract interface for reconciler plugins.

A reconciler owns the lifecycle of one or more declared resource types.
The plugin host calls create, read and delete with the resource's
declared+persisted attributes and persists whatever attributes come back.
Reconcilers are discovered via Python entry points in the
'snapshot_reconciler.reconcilers' group.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from errors import SnapshotError, Timeout
from plugins.base import LifecycleState, ResourceData

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Result from a reconciler's reconcile() call."""

    success: bool = False
    message: str = ""
    requeue_after: Optional[int] = None


class ReconcilerPlugin(ABC):
    """
    Abstract base class for reconciler plugins.

    Subclasses implement the three lifecycle entry points. ``reconcile``
    picks the right one from the resource's identity and lifecycle state
    and turns typed errors into a ReconcileResult.
    """

    # Name of the client plugin the registry injects at construction
    client_plugin: Optional[str] = None

    # Seconds after which a timed-out or still-pending create is re-read
    timeout_requeue_after: int = 60

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this reconciler."""
        pass

    @property
    @abstractmethod
    def resource_types(self) -> List[str]:
        """Resource type names this reconciler handles."""
        pass

    @abstractmethod
    async def create(
        self, data: ResourceData, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Create the remote object for a declared resource.

        The identity is set on ``data`` as soon as the remote object exists,
        so it survives any later failure.

        Args:
            data: Declared attributes of the resource.
            timeout: Budget in seconds for waiting on the remote object.

        Returns:
            The attributes to persist.
        """
        pass

    @abstractmethod
    async def read(self, data: ResourceData) -> Dict[str, Any]:
        """
        Refresh a resource from the remote system.

        Args:
            data: Persisted attributes and identity of the resource.

        Returns:
            The attributes to persist.
        """
        pass

    @abstractmethod
    async def delete(self, data: ResourceData) -> None:
        """
        Delete the remote object behind a resource.

        Args:
            data: Persisted attributes and identity of the resource.
        """
        pass

    async def reconcile(
        self, data: ResourceData, deletion_requested: bool = False
    ) -> ReconcileResult:
        """
        Converge one resource towards its declared state.

        Args:
            data: The resource's declared+persisted attributes.
            deletion_requested: True when the declaration was removed.

        Returns:
            ReconcileResult indicating success/failure.
        """
        try:
            if deletion_requested:
                if data.id is None:
                    data.state = LifecycleState.REMOVED
                    return ReconcileResult(success=True, message="Nothing to delete")
                resource_id = data.id
                await self.delete(data)
                return ReconcileResult(success=True, message=f"Deleted {resource_id}")

            if data.id is None:
                await self.create(data)
                return ReconcileResult(success=True, message=f"Created {data.id}")

            await self.read(data)
            if data.state == LifecycleState.WAITING:
                return ReconcileResult(
                    success=False,
                    message=f"Waiting for {data.id} to complete",
                    requeue_after=self.timeout_requeue_after,
                )
            if data.state == LifecycleState.FAILED:
                return ReconcileResult(
                    success=False, message=f"{data.id} is in a failed state"
                )
            return ReconcileResult(success=True, message=f"Refreshed {data.id}")

        except Timeout as e:
            logger.warning(f"Reconciler '{self.name}': {e.message}")
            return ReconcileResult(
                success=False,
                message=e.message,
                requeue_after=self.timeout_requeue_after,
            )
        except SnapshotError as e:
            logger.error(f"Reconciler '{self.name}' failed: {e.message}")
            return ReconcileResult(success=False, message=e.message)
