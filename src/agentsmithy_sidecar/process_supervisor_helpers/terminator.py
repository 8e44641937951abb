"""Graceful-then-forceful termination of the spawned sidecar."""

import asyncio
import logging

logger = logging.getLogger(__name__)


async def terminate_child(process: asyncio.subprocess.Process, grace_seconds: float) -> int:
    """
    Send a termination signal and wait; kill if the grace period elapses.

    Returns:
        The process exit code
    """
    if process.returncode is not None:
        return process.returncode

    try:
        process.terminate()
    except ProcessLookupError:  # policy_guard: allow-silent-handler
        return await process.wait()

    try:
        return await asyncio.wait_for(process.wait(), timeout=grace_seconds)
    except asyncio.TimeoutError:  # policy_guard: allow-silent-handler
        logger.warning("Server did not stop within %gs; force killing server process", grace_seconds)

    try:
        process.kill()
    except ProcessLookupError:  # policy_guard: allow-silent-handler
        pass
    return await process.wait()
