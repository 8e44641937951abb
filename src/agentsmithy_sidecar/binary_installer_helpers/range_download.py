"""HTTP range download into a ``.part`` file, following redirects manually."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from ..exceptions import DownloadFailedError, TooManyRedirectsError
from ..http_utils import REDIRECT_STATUSES, resolve_redirect
from .progress import ProgressThrottle

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 10
CHUNK_BYTES = 64 * 1024

HTTP_OK = 200
HTTP_PARTIAL_CONTENT = 206
HTTP_RANGE_NOT_SATISFIABLE = 416


class DownloadOutcome(Enum):
    """How a range download ended."""

    STREAMED = "streamed"
    ALREADY_COMPLETE = "already_complete"


class RangeDownload:
    """One download attempt of ``url`` into ``part_path`` starting at ``offset``.

    The Range header is computed once from the initial offset and sent on
    every redirect hop. Transport and write failures leave ``part_path``
    in place so a later attempt can resume.
    """

    def __init__(self, session: Any, url: str, part_path: Path, offset: int, progress: ProgressThrottle):
        self.session = session
        self.url = url
        self.part_path = part_path
        self.offset = offset
        self.progress = progress
        self.headers: Dict[str, str] = {"Range": f"bytes={offset}-"} if offset > 0 else {}

    async def run(self) -> DownloadOutcome:
        current_url = self.url
        redirects = 0
        while True:
            async with self.session.get(current_url, headers=self.headers, allow_redirects=False) as response:
                status = response.status
                if status in REDIRECT_STATUSES:
                    location = response.headers.get("Location")
                    if not location:
                        raise DownloadFailedError("Redirect location not found", status=status)
                    redirects += 1
                    if redirects > MAX_REDIRECTS:
                        raise TooManyRedirectsError(f"Too many redirects (>{MAX_REDIRECTS})", url=self.url)
                    current_url = resolve_redirect(current_url, location)
                    logger.info("Following redirect (%d/%d): %s", redirects, MAX_REDIRECTS, current_url)
                    continue
                return await self._handle_response(response, status)

    async def _handle_response(self, response: Any, status: int) -> DownloadOutcome:
        if status == HTTP_RANGE_NOT_SATISFIABLE and self.offset > 0:
            logger.info("Download appears to be complete, finalizing...")
            return DownloadOutcome.ALREADY_COMPLETE

        if status not in (HTTP_OK, HTTP_PARTIAL_CONTENT):
            raise DownloadFailedError(f"Download failed with status code: {status}", status=status)

        append = status == HTTP_PARTIAL_CONTENT and self.offset > 0
        if append:
            logger.info("Resuming download from byte %d", self.offset)
            downloaded = self.offset
        else:
            if self.offset > 0:
                logger.info("Server does not support resume, starting from beginning")
            downloaded = 0

        await self._stream(response, mode="ab" if append else "wb", downloaded=downloaded)
        return DownloadOutcome.STREAMED

    async def _stream(self, response: Any, *, mode: str, downloaded: int) -> None:
        try:
            handle = open(self.part_path, mode)
        except OSError as exc:
            raise DownloadFailedError(f"File write failed: {exc}") from exc

        with handle:
            async for chunk in response.content.iter_chunked(CHUNK_BYTES):
                try:
                    handle.write(chunk)
                except OSError as exc:
                    raise DownloadFailedError(f"File write failed: {exc}") from exc
                downloaded += len(chunk)
                self.progress.report(downloaded)


__all__ = ["CHUNK_BYTES", "MAX_REDIRECTS", "DownloadOutcome", "RangeDownload"]
