"""
Snapshot Errors - Typed failures surfaced to the plugin host.

Every error carries a human readable message and, when the remote object
already exists, the identity the host must keep so the resource can still
be read or deleted.
"""

from typing import Optional


class SnapshotError(Exception):
    """Base class for all reconciler errors."""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.message = message
        self.resource_id = resource_id
        super().__init__(message)


class ValidationError(SnapshotError):
    """The declaration is malformed. Raised before any remote call."""


class RemoteCreateFailed(SnapshotError):
    """The remote API rejected creation. No identity was assigned."""


class RemoteReadFailed(SnapshotError):
    """Find failed after the identity was assigned."""


class SnapshotFailed(SnapshotError):
    """The remote snapshot reached a terminal failure state."""

    def __init__(self, message: str, resource_id: Optional[str], state: str):
        self.state = state
        super().__init__(message, resource_id)


class Timeout(SnapshotError):
    """The wait phase exceeded its deadline before the snapshot completed."""

    def __init__(
        self,
        message: str,
        resource_id: Optional[str],
        last_state: Optional[str] = None,
    ):
        self.last_state = last_state
        super().__init__(message, resource_id)


class RemoteDeleteFailed(SnapshotError):
    """Delete failed and the reconciler is configured to surface it."""


# Remote client errors. The reconciler translates these into the
# lifecycle errors above.


class RemoteAPIError(SnapshotError):
    """The remote API returned an error response."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        resource_id: Optional[str] = None,
    ):
        self.status = status
        super().__init__(message, resource_id)


class RemoteNotFound(RemoteAPIError):
    """The requested remote object does not exist."""


class TransientRemoteError(RemoteAPIError):
    """Network failure, throttling or a 5xx response. Safe to retry."""
