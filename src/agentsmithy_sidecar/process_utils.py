from __future__ import annotations

"""Process liveness helpers shared by the lock and the supervisor."""

import logging
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


def is_process_alive(pid: Optional[int]) -> bool:
    """Return True when ``pid`` names a process that can currently be signalled.

    Uses a no-op signal probe, so a pid recycled by an unrelated process is
    still reported as alive.
    """
    if pid is None or pid <= 0:
        return False
    try:
        return psutil.pid_exists(pid)
    except (OSError, ValueError) as exc:  # policy_guard: allow-silent-handler
        logger.debug("Liveness probe failed for pid %s: %s", pid, exc)
        return False


def parse_pid(raw: object) -> Optional[int]:
    """Coerce a pid read from disk or JSON into ``int``; anything else is absent."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped.isdigit():
            value = int(stripped)
            return value if value > 0 else None
    return None


__all__ = ["is_process_alive", "parse_pid"]
