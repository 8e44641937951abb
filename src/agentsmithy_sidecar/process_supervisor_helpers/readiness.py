"""Readiness wait on the status record."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import ServerExitedError, ServerStartTimeoutError
from .status_record import read_status_record

logger = logging.getLogger(__name__)


async def wait_for_ready(
    status_path: Path,
    previous_pid: Optional[int],
    *,
    timeout_seconds: float,
    poll_interval_seconds: float,
    has_exited: Callable[[], bool] = lambda: False,
) -> int:
    """
    Poll ``status_path`` until it reports ``ready`` for a pid other than ``previous_pid``.

    Returns:
        The pid announced by the new sidecar

    Raises:
        ServerExitedError: The child exited before announcing readiness
        ServerStartTimeoutError: No fresh ready record within ``timeout_seconds``
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_seconds
    stale_reported = False

    while True:
        record = read_status_record(status_path)
        if record is not None and record.is_ready and record.server_pid is not None:
            if record.server_pid != previous_pid:
                return record.server_pid
            if not stale_reported:
                logger.info("Status file contains stale PID %s, waiting...", record.server_pid)
                stale_reported = True

        if has_exited():
            raise ServerExitedError()

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise ServerStartTimeoutError(
                f"Server failed to report readiness in {status_path} within {timeout_seconds:g}s",
                status_path=str(status_path),
            )
        await asyncio.sleep(min(poll_interval_seconds, remaining))
