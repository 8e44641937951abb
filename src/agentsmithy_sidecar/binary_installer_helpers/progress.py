"""Throttled download progress reporting."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

CALLBACK_INTERVAL_SECONDS = 0.1
LOG_INTERVAL_SECONDS = 2.0


def _percent(downloaded: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(downloaded / total * 100)


class ProgressThrottle:
    """Forwards progress to a callback at most every 100ms and to the log every 2s."""

    def __init__(
        self,
        expected_size: int,
        on_progress: Optional[ProgressCallback] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.expected_size = expected_size
        self.on_progress = on_progress
        self._clock = clock
        now = clock()
        self._last_callback = now
        self._last_log = now

    def report(self, downloaded: int) -> None:
        now = self._clock()
        if self.on_progress is not None and now - self._last_callback >= CALLBACK_INTERVAL_SECONDS:
            self.on_progress(downloaded, self.expected_size)
            self._last_callback = now
        if now - self._last_log >= LOG_INTERVAL_SECONDS:
            logger.info(
                "Download progress: %d%% (%d / %d bytes)",
                _percent(downloaded, self.expected_size),
                downloaded,
                self.expected_size,
            )
            self._last_log = now

    def report_now(self, downloaded: int) -> None:
        """Unthrottled report, used for the resume offset and the final tick."""
        if self.on_progress is not None:
            self.on_progress(downloaded, self.expected_size)
        self._last_callback = self._clock()


__all__ = ["ProgressCallback", "ProgressThrottle"]
