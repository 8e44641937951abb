"""
Cross-process advisory lock guarding the install directory.

The lock is a file created exclusively and holding the owner's pid. A lock
whose pid no longer runs is stale and is reclaimed by the next caller.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

from .exceptions import LockUnavailableError
from .process_utils import is_process_alive, parse_pid

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_RETRY_INTERVAL_SECONDS = 1.0


class LockCoordinator:
    """PID-stamped lock file shared by every instance using one install directory."""

    def __init__(
        self,
        lock_path: Union[str, Path],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_interval_seconds: float = DEFAULT_RETRY_INTERVAL_SECONDS,
        pid: Optional[int] = None,
    ):
        self.lock_path = Path(lock_path)
        self.max_attempts = max_attempts
        self.retry_interval_seconds = retry_interval_seconds
        self.pid = pid if pid is not None else os.getpid()

    def _read_holder_pid(self) -> Optional[int]:
        try:
            return parse_pid(self.lock_path.read_text(encoding="utf-8"))
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            return None

    def try_acquire(self) -> bool:
        """Single non-blocking attempt; reclaims the lock if its holder is dead."""
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:  # policy_guard: allow-silent-handler
            return self._reclaim_if_stale()
        except OSError as exc:
            logger.warning("Cannot create download lock %s: %s", self.lock_path, exc)
            return False

        try:
            os.write(fd, str(self.pid).encode("ascii"))
        except OSError as exc:
            logger.warning("Cannot write download lock %s: %s", self.lock_path, exc)
            os.close(fd)
            self._discard_unwritten_lock()
            return False
        os.close(fd)
        return True

    def _discard_unwritten_lock(self) -> None:
        try:
            self.lock_path.unlink()
        except OSError as exc:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            logger.warning("Failed to remove unwritten download lock: %s", exc)

    def _reclaim_if_stale(self) -> bool:
        try:
            holder = self._read_holder_pid()
        except OSError as exc:
            logger.warning("Cannot read download lock %s: %s", self.lock_path, exc)
            return False

        if holder is not None and is_process_alive(holder):
            return False

        logger.info("Removing stale download lock (PID %s)", holder)
        try:
            self.lock_path.unlink()
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            # Another instance reclaimed it first; race for the fresh file
            pass
        except OSError as exc:
            logger.warning("Failed to remove stale download lock: %s", exc)
            return False
        return self.try_acquire()

    async def acquire(self) -> bool:
        """Retry :meth:`try_acquire` once per interval until it wins or attempts run out."""
        for attempt in range(self.max_attempts):
            if self.try_acquire():
                logger.info("Acquired download lock")
                return True

            if attempt == 0:
                logger.info("Download lock is held by another instance, waiting...")

            if attempt < self.max_attempts - 1:
                await asyncio.sleep(self.retry_interval_seconds)

        logger.error("Failed to acquire download lock after %d attempts", self.max_attempts)
        return False

    def release(self) -> None:
        """Delete the lock file. Never raises."""
        try:
            self.lock_path.unlink()
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            return
        except OSError as exc:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            logger.error("Failed to release download lock: %s", exc)
            return
        logger.info("Released download lock")

    @asynccontextmanager
    async def held(self) -> AsyncIterator[None]:
        """Hold the lock for the body of an ``async with`` block."""
        if not await self.acquire():
            raise LockUnavailableError(lock_path=str(self.lock_path))
        try:
            yield
        finally:
            self.release()


__all__ = ["LockCoordinator"]
