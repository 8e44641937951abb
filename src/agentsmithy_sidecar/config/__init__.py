"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_seconds, env_str
from .settings import (
    DEFAULT_SERVER_URL,
    LOCK_FILE_NAME,
    STATUS_FILE_RELATIVE_PATH,
    SidecarSettings,
    status_file_path,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_SERVER_URL",
    "LOCK_FILE_NAME",
    "STATUS_FILE_RELATIVE_PATH",
    "SidecarSettings",
    "env_bool",
    "env_float",
    "env_int",
    "env_seconds",
    "env_str",
    "status_file_path",
]
