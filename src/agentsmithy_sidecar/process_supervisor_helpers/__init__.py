"""Collaborators for spawning and supervising the sidecar process."""

from .output_pump import pump_stream
from .readiness import wait_for_ready
from .status_record import ServerStatusRecord, read_status_record, resolve_server_url
from .terminator import terminate_child

__all__ = [
    "ServerStatusRecord",
    "pump_stream",
    "read_status_record",
    "resolve_server_url",
    "terminate_child",
    "wait_for_ready",
]
