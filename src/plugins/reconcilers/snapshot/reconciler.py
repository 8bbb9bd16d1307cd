"""
Snapshot Reconciler - Lifecycle of Civo instance snapshots.

Create requests the snapshot, records its identity, then either waits for
a one-shot snapshot to complete or reads a recurring one straight away.
Read re-derives every attribute from the remote object and leaves a
one-shot snapshot waiting until it reports complete. Delete is
best-effort unless the reconciler is configured to surface failures.
"""

import logging
from typing import Any, Dict, Optional

from config import PollConfig, ReconcilerConfig
from errors import (
    RemoteAPIError,
    RemoteCreateFailed,
    RemoteDeleteFailed,
    RemoteNotFound,
    RemoteReadFailed,
    SnapshotError,
    ValidationError,
)
from plugins.base import LifecycleState, RemoteSnapshot, ResourceData, SnapshotRequest
from plugins.clients.base import RemoteClient
from plugins.reconcilers.base import ReconcilerPlugin
from plugins.reconcilers.snapshot.poll import COMPLETE_STATE, PollPolicy
from plugins.reconcilers.snapshot.projector import StateProjector
from validation import parse_declaration

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "civo_snapshot"


class SnapshotReconciler(ReconcilerPlugin):
    """Reconciler for the ``civo_snapshot`` resource type."""

    name = "snapshot"
    resource_types = [RESOURCE_TYPE]
    client_plugin = "civo"

    def __init__(
        self,
        client: RemoteClient,
        poll_config: Optional[PollConfig] = None,
        config: Optional[ReconcilerConfig] = None,
        projector: Optional[StateProjector] = None,
    ):
        self.client = client
        self.config = config or ReconcilerConfig()
        self.poll_policy = PollPolicy(client, poll_config)
        self.projector = projector or StateProjector()

    async def create(
        self, data: ResourceData, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        declaration = parse_declaration(data.attributes)
        declared = dict(data.attributes)
        data.state = LifecycleState.CREATING

        try:
            remote = await self.client.create_snapshot(
                declaration.name, SnapshotRequest.from_declaration(declaration)
            )
        except SnapshotError as e:
            data.state = LifecycleState.FAILED
            raise RemoteCreateFailed(
                f"Failed to create snapshot {declaration.name}: {e.message}"
            ) from e

        if not remote.id:
            data.state = LifecycleState.FAILED
            raise RemoteCreateFailed(
                f"Failed to create snapshot {declaration.name}: no ID returned"
            )

        data.set_id(remote.id)
        logger.info(f"Created snapshot {declaration.name} with ID {data.id}")

        try:
            if self.poll_policy.requires_wait(declaration.mode):
                data.state = LifecycleState.WAITING
                remote = await self.poll_policy.wait_until_complete(data.id, timeout)
            else:
                logger.info(
                    f"Snapshot {data.id} is recurring ({declaration.cron_timing}), "
                    f"not waiting for completion"
                )
                remote = await self._find(data.id)
        except SnapshotError as e:
            data.state = LifecycleState.FAILED
            if e.resource_id is None:
                e.resource_id = data.id
            raise

        return self._apply(data, remote, declared)

    async def read(self, data: ResourceData) -> Dict[str, Any]:
        if data.id is None:
            raise ValidationError("Cannot read a snapshot that has no ID")

        remote = await self._find(data.id)
        return self._apply(data, remote, data.attributes)

    async def delete(self, data: ResourceData) -> None:
        if data.id is None:
            data.state = LifecycleState.REMOVED
            return

        resource_id = data.id
        data.state = LifecycleState.DELETING

        try:
            await self.client.delete_snapshot(resource_id)
        except RemoteNotFound:
            logger.info(f"Snapshot {resource_id} was already deleted")
        except Exception as e:
            if not self.config.ignore_delete_errors:
                data.state = LifecycleState.FAILED
                message = e.message if isinstance(e, SnapshotError) else str(e)
                raise RemoteDeleteFailed(
                    f"Failed to delete snapshot {resource_id}: {message}",
                    resource_id=resource_id,
                ) from e
            logger.warning(
                f"Failed to delete snapshot {resource_id}, "
                f"removing it from state anyway: {e}"
            )

        data.set_id(None)
        data.state = LifecycleState.REMOVED
        logger.info(f"Snapshot {resource_id} removed")

    async def _find(self, resource_id: str) -> RemoteSnapshot:
        try:
            return await self.client.find_snapshot(resource_id)
        except RemoteAPIError as e:
            raise RemoteReadFailed(
                f"Failed to read snapshot {resource_id}: {e.message}",
                resource_id=resource_id,
            ) from e

    def _apply(
        self,
        data: ResourceData,
        remote: RemoteSnapshot,
        declared: Dict[str, Any],
    ) -> Dict[str, Any]:
        data.attributes = self.projector.project(remote, declared)
        data.state = self._lifecycle_state(remote, data.attributes)
        return data.attributes

    def _lifecycle_state(
        self, remote: RemoteSnapshot, attributes: Dict[str, Any]
    ) -> LifecycleState:
        # Recurring snapshots cycle through states on every run
        if remote.state == COMPLETE_STATE or attributes.get("cron_timing"):
            return LifecycleState.REALIZED
        if remote.state in self.poll_policy.failure_states:
            return LifecycleState.FAILED
        return LifecycleState.WAITING
