"""
Core plugin types and dataclasses.

This module contains the types shared by the remote client plugins and
the snapshot reconciler: the parsed declaration, its creation mode, the
client-neutral remote snapshot and the host's per-resource data.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class LifecycleState(Enum):
    """Lifecycle of a single declared resource instance."""

    UNREALIZED = "unrealized"
    CREATING = "creating"
    WAITING = "waiting"
    REALIZED = "realized"
    FAILED = "failed"
    DELETING = "deleting"
    REMOVED = "removed"


@dataclass(frozen=True)
class OneShot:
    """The snapshot is taken once and reaches a single terminal state."""


@dataclass(frozen=True)
class Recurring:
    """The snapshot is re-taken on a cron schedule by the remote system."""

    schedule: str


CreationMode = Union[OneShot, Recurring]


@dataclass(frozen=True)
class SnapshotDeclaration:
    """Desired state of one snapshot, immutable after creation."""

    name: str
    instance_id: str
    safe: bool = False
    mode: CreationMode = field(default_factory=OneShot)

    @property
    def cron_timing(self) -> Optional[str]:
        if isinstance(self.mode, Recurring):
            return self.mode.schedule
        return None


@dataclass
class SnapshotRequest:
    """Creation request sent to the remote client."""

    instance_id: str
    safe: bool = False
    cron_timing: Optional[str] = None

    @classmethod
    def from_declaration(cls, decl: SnapshotDeclaration) -> "SnapshotRequest":
        return cls(
            instance_id=decl.instance_id,
            safe=decl.safe,
            cron_timing=decl.cron_timing,
        )


@dataclass
class RemoteSnapshot:
    """Snapshot as reported by the remote system."""

    id: str
    name: str = ""
    instance_id: str = ""
    state: str = ""
    hostname: str = ""
    template_id: str = ""
    region: str = ""
    size_gb: int = 0
    safe: int = 0  # remote encodes the flag as 0/1
    cron_timing: str = ""
    requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass
class ResourceData:
    """
    Declared and persisted attributes of one resource, owned by the host.

    The reconciler sets ``id`` as soon as the remote object exists and
    replaces ``attributes`` wholesale on every successful read.
    """

    attributes: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    state: LifecycleState = LifecycleState.UNREALIZED

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set_id(self, resource_id: Optional[str]) -> None:
        self.id = resource_id or None
