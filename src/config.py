"""
Configuration module for the snapshot reconciler.

Loads configuration from environment variables. The Civo client, the
creation poll loop and the reconciler policy each get their own section.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class CivoConfig:
    """Civo API client configuration."""

    api_key: str = field(default="", repr=False)  # Never log the token
    api_url: str = "https://api.civo.com"
    region: str = ""
    request_timeout: int = 30  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            api_key=os.getenv("CIVO_TOKEN", ""),
            api_url=os.getenv("CIVO_API_URL", "https://api.civo.com"),
            region=os.getenv("CIVO_REGION", ""),
            request_timeout=int(os.getenv("CIVO_REQUEST_TIMEOUT", "30")),
        )


@dataclass
class PollConfig:
    """Creation wait loop configuration."""

    create_timeout: int = 3600  # seconds
    poll_interval: float = 5.0  # first delay between polls
    max_poll_interval: float = 30.0
    backoff_factor: float = 2.0
    failure_states: List[str] = field(default_factory=lambda: ["failed"])

    def __post_init__(self):
        if self.create_timeout <= 0:
            raise ValueError("create_timeout must be positive")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.max_poll_interval < self.poll_interval:
            raise ValueError("max_poll_interval must be >= poll_interval")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        failure_states = os.getenv("SNAPSHOT_FAILURE_STATES")
        return cls(
            create_timeout=int(os.getenv("SNAPSHOT_CREATE_TIMEOUT", "3600")),
            poll_interval=float(os.getenv("SNAPSHOT_POLL_INTERVAL", "5")),
            max_poll_interval=float(os.getenv("SNAPSHOT_MAX_POLL_INTERVAL", "30")),
            backoff_factor=float(os.getenv("SNAPSHOT_BACKOFF_FACTOR", "2.0")),
            failure_states=(
                _parse_list(failure_states)
                if failure_states is not None
                else ["failed"]
            ),
        )


@dataclass
class ReconcilerConfig:
    """Reconciler policy configuration."""

    # Delete failures are logged and absorbed instead of surfaced
    ignore_delete_errors: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            ignore_delete_errors=_parse_bool(
                os.getenv("IGNORE_DELETE_ERRORS", "true")
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@dataclass
class Config:
    """Main configuration object."""

    civo: CivoConfig
    poll: PollConfig
    reconciler: ReconcilerConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            civo=CivoConfig.from_env(),
            poll=PollConfig.from_env(),
            reconciler=ReconcilerConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            civo=CivoConfig(),
            poll=PollConfig(),
            reconciler=ReconcilerConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
