"""Settings for locating, installing and supervising the sidecar binary."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from .errors import ConfigurationError
from .runtime import env_float, env_int, env_seconds, env_str

DEFAULT_INSTALL_DIR = Path.home() / ".agentsmithy" / "server"
DEFAULT_RELEASE_API_URL = "https://api.github.com/repos/AgentSmithyAI/agentsmithy-agent/releases/latest"
DEFAULT_DOWNLOAD_BASE_URL = "https://github.com/AgentSmithyAI/agentsmithy-agent/releases/download"
DEFAULT_SERVER_URL = "http://localhost:8765"
DEFAULT_IDE_NAME = "vscode"

LOCK_FILE_NAME = ".download.lock"
STATUS_FILE_RELATIVE_PATH = Path(".agentsmithy") / "status.json"

_POSITIVE_FIELDS = (
    "lock_max_attempts",
    "lock_retry_interval_seconds",
    "readiness_timeout_seconds",
    "readiness_poll_interval_seconds",
    "stop_grace_seconds",
    "request_timeout_seconds",
    "health_timeout_seconds",
)


@dataclass(frozen=True)
class SidecarSettings:
    """Immutable configuration shared by every lifecycle component."""

    install_dir: Path = DEFAULT_INSTALL_DIR
    release_api_url: str = DEFAULT_RELEASE_API_URL
    download_base_url: str = DEFAULT_DOWNLOAD_BASE_URL
    default_server_url: str = DEFAULT_SERVER_URL
    ide_name: str = DEFAULT_IDE_NAME
    lock_max_attempts: int = 60
    lock_retry_interval_seconds: float = 1.0
    readiness_timeout_seconds: float = 30.0
    readiness_poll_interval_seconds: float = 0.5
    stop_grace_seconds: float = 5.0
    request_timeout_seconds: float = 30.0
    health_timeout_seconds: float = 5.0

    def __post_init__(self) -> None:
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError.invalid_value(name, value, "Must be positive")
        for name in ("release_api_url", "download_base_url", "default_server_url", "ide_name"):
            if not getattr(self, name):
                raise ConfigurationError.missing_value(name)
        object.__setattr__(self, "install_dir", Path(self.install_dir).expanduser())

    @classmethod
    def from_env(cls) -> "SidecarSettings":
        """Build settings from ``AGENTSMITHY_*`` environment variables."""
        defaults = {f.name: f.default for f in fields(cls)}
        return cls(
            install_dir=Path(env_str("AGENTSMITHY_INSTALL_DIR", or_value=str(defaults["install_dir"]))),
            release_api_url=env_str("AGENTSMITHY_RELEASE_API_URL", or_value=defaults["release_api_url"]),
            download_base_url=env_str("AGENTSMITHY_DOWNLOAD_BASE_URL", or_value=defaults["download_base_url"]),
            default_server_url=env_str("AGENTSMITHY_SERVER_URL", or_value=defaults["default_server_url"]),
            ide_name=env_str("AGENTSMITHY_IDE", or_value=defaults["ide_name"]),
            lock_max_attempts=env_int("AGENTSMITHY_LOCK_MAX_ATTEMPTS", or_value=defaults["lock_max_attempts"]),
            lock_retry_interval_seconds=env_seconds("AGENTSMITHY_LOCK_RETRY_SECONDS", or_value=defaults["lock_retry_interval_seconds"]),
            readiness_timeout_seconds=env_seconds("AGENTSMITHY_READY_TIMEOUT_SECONDS", or_value=defaults["readiness_timeout_seconds"]),
            readiness_poll_interval_seconds=env_seconds(
                "AGENTSMITHY_READY_POLL_SECONDS", or_value=defaults["readiness_poll_interval_seconds"]
            ),
            stop_grace_seconds=env_seconds("AGENTSMITHY_STOP_GRACE_SECONDS", or_value=defaults["stop_grace_seconds"]),
            request_timeout_seconds=env_float("AGENTSMITHY_REQUEST_TIMEOUT_SECONDS", or_value=defaults["request_timeout_seconds"]),
            health_timeout_seconds=env_float("AGENTSMITHY_HEALTH_TIMEOUT_SECONDS", or_value=defaults["health_timeout_seconds"]),
        )

    @property
    def lock_path(self) -> Path:
        return self.install_dir / LOCK_FILE_NAME

    @property
    def log_dir(self) -> Path:
        return self.install_dir / "logs"


def status_file_path(workspace_root: str | Path) -> Path:
    """Return the sidecar-owned status record for ``workspace_root``."""
    return Path(workspace_root) / STATUS_FILE_RELATIVE_PATH


__all__ = [
    "DEFAULT_SERVER_URL",
    "LOCK_FILE_NAME",
    "STATUS_FILE_RELATIVE_PATH",
    "SidecarSettings",
    "status_file_path",
]
