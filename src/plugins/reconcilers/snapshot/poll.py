"""
Snapshot creation wait loop.

Polls the remote client until a one-shot snapshot reaches a terminal
state or the deadline passes. Recurring snapshots are never waited on:
their "complete" state is transient and comes back on every run.
"""

import asyncio
import logging
from typing import Iterator, Optional

from config import PollConfig
from errors import (
    RemoteAPIError,
    RemoteReadFailed,
    SnapshotFailed,
    Timeout,
    TransientRemoteError,
)
from plugins.base import CreationMode, OneShot, RemoteSnapshot
from plugins.clients.base import RemoteClient

logger = logging.getLogger(__name__)

COMPLETE_STATE = "complete"


class PollPolicy:
    """
    Decides whether a created snapshot must be waited on and drives the
    bounded retry loop when it does.
    """

    def __init__(self, client: RemoteClient, config: Optional[PollConfig] = None):
        self.client = client
        self.config = config or PollConfig()
        self.failure_states = frozenset(self.config.failure_states)

    def requires_wait(self, mode: CreationMode) -> bool:
        """Only one-shot snapshots have a single completion point to wait for."""
        return isinstance(mode, OneShot)

    def backoff_delays(self) -> Iterator[float]:
        """Yield poll delays growing geometrically up to max_poll_interval."""
        delay = self.config.poll_interval
        while True:
            yield delay
            delay = min(delay * self.config.backoff_factor, self.config.max_poll_interval)

    async def wait_until_complete(
        self, snapshot_id: str, deadline: Optional[float] = None
    ) -> RemoteSnapshot:
        """
        Poll until the snapshot is complete.

        Args:
            snapshot_id: The remote-assigned snapshot ID
            deadline: Seconds to wait before giving up. Defaults to
                the configured create_timeout.

        Returns:
            The snapshot as observed in the poll that saw it complete.

        Raises:
            SnapshotFailed: The snapshot entered a configured failure state.
            RemoteReadFailed: Find failed with a non-retryable error.
            Timeout: The deadline passed first. Raised no later than
                one poll interval after the deadline.
        """
        if deadline is None:
            deadline = self.config.create_timeout

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        delays = self.backoff_delays()
        last_state: Optional[str] = None
        attempts = 0

        while True:
            attempts += 1
            remaining = max(deadline - (loop.time() - start_time), 0)
            try:
                # A hung Find must not push the Timeout past the deadline
                snapshot = await asyncio.wait_for(
                    self.client.find_snapshot(snapshot_id), remaining
                )
            except asyncio.TimeoutError:
                raise self._timeout(snapshot_id, deadline, last_state)
            except TransientRemoteError as e:
                logger.warning(
                    f"Transient error polling snapshot {snapshot_id}, "
                    f"will retry: {e.message}"
                )
            except RemoteAPIError as e:
                raise RemoteReadFailed(
                    f"Error getting snapshot {snapshot_id}: {e.message}",
                    resource_id=snapshot_id,
                ) from e
            else:
                last_state = snapshot.state
                if snapshot.state == COMPLETE_STATE:
                    logger.info(
                        f"Snapshot {snapshot_id} complete after {attempts} poll(s)"
                    )
                    return snapshot
                if snapshot.state in self.failure_states:
                    raise SnapshotFailed(
                        f"Snapshot {snapshot_id} entered failure state "
                        f"'{snapshot.state}'",
                        resource_id=snapshot_id,
                        state=snapshot.state,
                    )

            remaining = deadline - (loop.time() - start_time)
            if remaining <= 0:
                raise self._timeout(snapshot_id, deadline, last_state)

            delay = min(next(delays), remaining)
            logger.debug(
                f"Snapshot {snapshot_id} state: {last_state}, waiting {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    def _timeout(
        self, snapshot_id: str, deadline: float, last_state: Optional[str]
    ) -> Timeout:
        return Timeout(
            f"Timed out after {deadline}s waiting for snapshot "
            f"{snapshot_id} to complete (last state: {last_state or 'unknown'})",
            resource_id=snapshot_id,
            last_state=last_state,
        )
