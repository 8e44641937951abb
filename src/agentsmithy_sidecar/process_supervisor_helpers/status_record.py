"""Reader for the sidecar-owned ``.agentsmithy/status.json`` record.

The sidecar is the only writer. Fields with unexpected types are treated as
absent, and a missing or unparsable file reads as no record at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import orjson

from ..config import status_file_path
from ..process_utils import parse_pid

logger = logging.getLogger(__name__)

READY_STATUS = "ready"


@dataclass(frozen=True)
class ServerStatusRecord:
    """Snapshot of the status record."""

    port: Optional[int] = None
    server_pid: Optional[int] = None
    server_status: Optional[str] = None
    url_port: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.server_status == READY_STATUS

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["ServerStatusRecord"]:
        if not isinstance(payload, dict):
            return None
        raw_port = payload.get("port")
        port = raw_port if isinstance(raw_port, int) and not isinstance(raw_port, bool) else None
        url_port = None
        if port is not None:
            url_port = str(port)
        elif isinstance(raw_port, str) and raw_port.strip():
            url_port = raw_port.strip()

        raw_pid = payload.get("server_pid")
        server_pid = raw_pid if isinstance(raw_pid, int) else None
        raw_status = payload.get("server_status")
        return cls(
            port=port,
            server_pid=parse_pid(server_pid),
            server_status=raw_status if isinstance(raw_status, str) else None,
            url_port=url_port,
        )


def read_status_record(path: Union[str, Path]) -> Optional[ServerStatusRecord]:
    try:
        content = Path(path).read_bytes()
    except OSError:  # policy_guard: allow-silent-handler
        return None
    try:
        payload = orjson.loads(content)
    except orjson.JSONDecodeError:  # policy_guard: allow-silent-handler
        logger.debug("Status record %s is not valid JSON yet", path)
        return None
    return ServerStatusRecord.from_payload(payload)


def resolve_server_url(workspace_root: Optional[Union[str, Path]], default_url: str) -> str:
    """``http://localhost:<port>`` from the status record, else ``default_url``."""
    if not workspace_root:
        return default_url
    record = read_status_record(status_file_path(workspace_root))
    if record is None or record.url_port is None:
        return default_url
    return f"http://localhost:{record.url_port}"
