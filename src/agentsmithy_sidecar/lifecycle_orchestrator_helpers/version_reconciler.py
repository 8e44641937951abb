"""
Install, repair or update the sidecar binary before it is started.

Decision table, comparing the newest installed version with the latest release:

- nothing installed: ask, then download
- same version: verify size and hash; re-download silently on mismatch,
  otherwise make sure the stable link exists
- installed is older: ask about the update, then download
- installed is newer: keep the local build
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from ..binary_installer import BinaryInstaller
from ..binary_installer_helpers import ProgressCallback
from ..exceptions import DownloadCancelledError
from ..lock_coordinator import LockCoordinator
from ..release_fetcher import ReleaseDescriptor, ReleaseFetcher
from ..version_registry import compare_versions
from .events import UserNotice
from .prompts import ConfirmDownload, DownloadPrompt

logger = logging.getLogger(__name__)

NoticeSink = Callable[[UserNotice], None]


class VersionReconciler:
    def __init__(
        self,
        fetcher: ReleaseFetcher,
        installer: BinaryInstaller,
        lock: LockCoordinator,
        confirm_download: ConfirmDownload,
        *,
        on_progress: Optional[ProgressCallback] = None,
        notify: Optional[NoticeSink] = None,
    ):
        self.fetcher = fetcher
        self.installer = installer
        self.lock = lock
        self._confirm_download = confirm_download
        self._on_progress = on_progress
        self._notify = notify

    async def ensure_server(self) -> Path:
        """
        Make sure the stable link points at a usable binary.

        Returns:
            The stable link path

        Raises:
            DownloadCancelledError: The user declined the download or update
        """
        release = await self.fetcher.fetch_latest_release()
        latest = release.version_clean
        installed = self.installer.registry.latest_installed()

        if installed is None:
            logger.info("No server installed, downloading %s", latest)
            await self._confirm(release, is_update=False)
            await self.download_with_lock(release)
            return self.installer.link_path

        ordering = compare_versions(installed, latest)
        if ordering == 0:
            await self._reconcile_same_version(release)
        elif ordering < 0:
            logger.info("Update available: %s -> %s", installed, latest)
            self._emit("info", f"AgentSmithy server update available: {installed} -> {latest}")
            await self._confirm(release, is_update=True)
            await self.download_with_lock(release)
        else:
            logger.warning(
                "Installed version %s is newer than latest release %s; keeping installed version",
                installed,
                latest,
            )
            self.installer.ensure_link(installed)
        return self.installer.link_path

    async def _reconcile_same_version(self, release: ReleaseDescriptor) -> None:
        version = release.version_clean
        intact = self.installer.verify_integrity(version, release.expected_size_bytes)
        if intact:
            intact = await self.installer.verify_sha256(version, release.expected_hash_hex)
        if not intact:
            logger.warning("Installed version %s failed verification, re-downloading", version)
            await self.download_with_lock(release)
            return
        logger.info("Latest version %s already installed", version)
        self.installer.ensure_link(version)

    async def _confirm(self, release: ReleaseDescriptor, *, is_update: bool) -> None:
        prompt = DownloadPrompt(
            version=release.version_clean,
            size_bytes=release.expected_size_bytes,
            is_update=is_update,
        )
        if not await self._confirm_download(prompt):
            logger.info("Download of %s declined", release.version_clean)
            raise DownloadCancelledError(version=release.version_clean)

    async def download_with_lock(self, release: ReleaseDescriptor) -> Path:
        """
        Download ``release`` while holding the install-directory lock, then prune old versions.

        Raises:
            LockUnavailableError: Another live process kept the lock for every attempt
        """
        async with self.lock.held():
            path = await self.installer.download_binary(
                release.version_tag,
                release.version_clean,
                self.installer.link_path,
                release.expected_size_bytes,
                release.expected_hash_hex,
                on_progress=self._on_progress,
            )
            self.installer.cleanup_old_versions(release.version_clean)
        logger.info("Server %s installed at %s", release.version_clean, path)
        return path

    def _emit(self, level: str, message: str) -> None:
        if self._notify is not None:
            self._notify(UserNotice(level=level, message=message))


__all__ = ["NoticeSink", "VersionReconciler"]
