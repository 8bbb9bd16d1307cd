"""
Civo Client Plugin - Implements RemoteClient for the Civo snapshot API.

Talks to the Civo v2 REST API with aiohttp. Responses are parsed with
pydantic models and converted into client-neutral RemoteSnapshot objects.
"""

import asyncio
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import BaseModel, Field, ValidationError, field_validator

from config import CivoConfig
from errors import RemoteAPIError, RemoteNotFound, TransientRemoteError
from plugins.base import RemoteSnapshot, SnapshotRequest
from plugins.clients.base import RemoteClient

logger = logging.getLogger(__name__)


class CivoSnapshot(BaseModel):
    """A snapshot as returned by the Civo API."""

    id: str = Field(..., description="Snapshot ID")
    name: str = Field("", description="Snapshot name")
    instance_id: str = Field("", description="Source instance ID")
    hostname: str = Field("", description="Hostname of the source instance")
    template_id: str = Field("", description="Template of the source instance")
    region: str = Field("", description="Region code")
    safe: int = Field(0, description="1 if the instance was shut down")
    size_gb: int = Field(0, description="Snapshot size in gigabytes")
    state: str = Field("", description="Snapshot state")
    cron_timing: str = Field("", description="Cron schedule, empty if one-off")
    requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator(
        "name",
        "instance_id",
        "hostname",
        "template_id",
        "region",
        "state",
        "cron_timing",
        mode="before",
    )
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v

    @field_validator("safe", "size_gb", mode="before")
    @classmethod
    def coerce_int(cls, v):
        if v is None:
            return 0
        if isinstance(v, bool):
            return int(v)
        return v

    @field_validator("requested_at", "completed_at", mode="before")
    @classmethod
    def zero_time_as_none(cls, v):
        # Civo reports unset timestamps as empty strings or year 1
        if v in (None, ""):
            return None
        if isinstance(v, str) and v.startswith("0001-01-01"):
            return None
        return v

    def to_remote(self) -> RemoteSnapshot:
        return RemoteSnapshot(
            id=self.id,
            name=self.name,
            instance_id=self.instance_id,
            state=self.state,
            hostname=self.hostname,
            template_id=self.template_id,
            region=self.region,
            size_gb=self.size_gb,
            safe=self.safe,
            cron_timing=self.cron_timing,
            requested_at=self.requested_at,
            completed_at=self.completed_at,
        )


class CivoClient(RemoteClient):
    """
    Remote client for Civo instance snapshots.

    Each call opens its own HTTP session, so one client instance can be
    shared by concurrently reconciled resources.
    """

    def __init__(self):
        defaults = CivoConfig()
        self.api_key: Optional[str] = None
        self.api_url: str = defaults.api_url
        self.region: str = defaults.region
        self.request_timeout: int = defaults.request_timeout

    @property
    def name(self) -> str:
        return "civo"

    @property
    def version(self) -> str:
        return "1.0.0"

    @classmethod
    def load_config_from_env(cls) -> Dict[str, Any]:
        """Load Civo client configuration from environment variables."""
        return asdict(CivoConfig.from_env())

    async def initialize(self, config: Dict[str, Any]) -> None:
        """Initialize the client with configuration."""
        self.api_key = config.get("api_key")
        self.api_url = config.get("api_url", self.api_url).rstrip("/")
        self.region = config.get("region", self.region)
        self.request_timeout = config.get("request_timeout", self.request_timeout)

        if not self.api_key:
            logger.warning("Civo API key not configured. Set CIVO_TOKEN.")

        logger.debug(
            f"Civo client initialized: api_url={self.api_url}, "
            f"region={self.region or '(account default)'}"
        )

    async def create_snapshot(
        self, name: str, request: SnapshotRequest
    ) -> RemoteSnapshot:
        """Create a snapshot of an instance, one-off or on a cron schedule."""
        payload: Dict[str, Any] = {
            "instance_id": request.instance_id,
            "safe": request.safe,
        }
        if request.cron_timing:
            payload["cron_timing"] = request.cron_timing
        if self.region:
            payload["region"] = self.region

        data = await self._request("PUT", f"/v2/snapshots/{name}", json=payload)
        snapshot = self._parse_snapshot(data)
        logger.info(f"Requested Civo snapshot {name} ({snapshot.id})")
        return snapshot

    async def find_snapshot(self, snapshot_id: str) -> RemoteSnapshot:
        """
        Find a snapshot by ID, falling back to an exact name match.

        Raises:
            RemoteNotFound: If no snapshot matches.
            RemoteAPIError: If the name matches more than one snapshot.
        """
        snapshots = await self.list_snapshots()

        for snapshot in snapshots:
            if snapshot.id == snapshot_id:
                return snapshot

        by_name = [s for s in snapshots if s.name == snapshot_id]
        if len(by_name) == 1:
            return by_name[0]
        if len(by_name) > 1:
            raise RemoteAPIError(
                f"Multiple snapshots match '{snapshot_id}'",
                resource_id=snapshot_id,
            )

        raise RemoteNotFound(
            f"Snapshot '{snapshot_id}' not found", status=404, resource_id=snapshot_id
        )

    async def list_snapshots(self) -> List[RemoteSnapshot]:
        """List all snapshots in the account."""
        data = await self._request("GET", "/v2/snapshots", params=self._params())
        if not isinstance(data, list):
            raise RemoteAPIError("Unexpected response listing snapshots")
        return [self._parse_snapshot(item) for item in data]

    async def delete_snapshot(self, snapshot_id: str) -> None:
        """Delete a snapshot."""
        await self._request(
            "DELETE",
            f"/v2/snapshots/{snapshot_id}",
            params=self._params(),
            resource_id=snapshot_id,
        )
        logger.info(f"Deleted Civo snapshot {snapshot_id}")

    # Private helper methods

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for Civo API requests."""
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"bearer {self.api_key}"
        return headers

    def _params(self) -> Dict[str, str]:
        return {"region": self.region} if self.region else {}

    def _parse_snapshot(self, data: Any) -> RemoteSnapshot:
        try:
            return CivoSnapshot.model_validate(data).to_remote()
        except ValidationError as e:
            raise RemoteAPIError(f"Malformed snapshot in Civo response: {e}")

    async def _request(
        self,
        method: str,
        path: str,
        resource_id: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            RemoteNotFound: On HTTP 404.
            TransientRemoteError: On connection failures, 429 and 5xx.
            RemoteAPIError: On any other error status or an undecodable body.
        """
        url = f"{self.api_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method, url, headers=self._get_headers(), **kwargs
                ) as response:
                    status = response.status
                    if status >= 400:
                        body = await response.text()
                        self._raise_for_status(method, path, status, body, resource_id)
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise RemoteAPIError(
                            f"{method} {path} returned invalid JSON: {e}",
                            status=status,
                            resource_id=resource_id,
                        )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientRemoteError(
                f"{method} {path} failed: {e}", resource_id=resource_id
            ) from e

    def _raise_for_status(
        self,
        method: str,
        path: str,
        status: int,
        body: str,
        resource_id: Optional[str],
    ) -> None:
        if status == 404:
            raise RemoteNotFound(
                f"{method} {path}: not found", status=status, resource_id=resource_id
            )
        if status == 429 or status >= 500:
            raise TransientRemoteError(
                f"{method} {path} returned HTTP {status}: {body}",
                status=status,
                resource_id=resource_id,
            )
        raise RemoteAPIError(
            f"{method} {path} returned HTTP {status}: {body}",
            status=status,
            resource_id=resource_id,
        )
