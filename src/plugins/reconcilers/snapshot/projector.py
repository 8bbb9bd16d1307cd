"""Projection of remote snapshots into persisted resource attributes."""

from datetime import datetime
from typing import Any, Dict, Optional

from plugins.base import RemoteSnapshot

DECLARED_ATTRIBUTES = ("name", "instance_id", "safe", "cron_timing")

COMPUTED_ATTRIBUTES = (
    "hostname",
    "template_id",
    "region",
    "size_gb",
    "state",
    "requested_at",
    "completed_at",
)


def format_timestamp(value: Optional[datetime]) -> str:
    """Canonical string form of a remote timestamp; empty when unset."""
    if value is None:
        return ""
    return value.isoformat()


class StateProjector:
    """
    Maps a remote snapshot into the attribute set the host persists.

    Computed attributes are always taken from the remote object. Declared
    string attributes fall back to the declared value only when the remote
    leaves them empty.
    """

    def project(
        self,
        remote: RemoteSnapshot,
        declared: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        declared = declared or {}
        return {
            "name": remote.name or declared.get("name", ""),
            "instance_id": remote.instance_id or declared.get("instance_id", ""),
            "safe": remote.safe == 1,
            "cron_timing": remote.cron_timing or declared.get("cron_timing") or None,
            "hostname": remote.hostname,
            "template_id": remote.template_id,
            "region": remote.region,
            "size_gb": remote.size_gb,
            "state": remote.state,
            "requested_at": format_timestamp(remote.requested_at),
            "completed_at": format_timestamp(remote.completed_at),
        }
