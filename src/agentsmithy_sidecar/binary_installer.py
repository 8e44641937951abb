"""
Binary installer for the sidecar executable.

Downloads a release asset into ``<versioned>.part`` with HTTP range resume,
checks it against the release descriptor, promotes it to the versioned
filename and repoints the stable link. Callers are expected to hold the
install-directory lock around :meth:`BinaryInstaller.download_binary`.
"""

from __future__ import annotations

import asyncio
import logging
import stat
from pathlib import Path
from typing import Optional, Union

from .binary_installer_helpers import (
    DownloadOutcome,
    ProgressCallback,
    ProgressThrottle,
    RangeDownload,
    compute_file_sha256,
    hashes_match,
    promote_download,
    size_matches,
)
from .exceptions import DownloadFailedError, FinalizeFailedError, IntegrityError
from .http_utils import SessionFactory, build_timeout, default_session_factory
from .network_errors import NETWORK_ERROR_TYPES, describe_network_error
from .platform_resolver import PlatformResolver
from .version_registry import VersionRegistry

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


class BinaryInstaller:
    """Owns the versioned files, ``.part`` files and stable link in one install directory."""

    def __init__(
        self,
        install_dir: Union[str, Path],
        resolver: PlatformResolver,
        *,
        download_base_url: str,
        request_timeout_seconds: float = 30.0,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.install_dir = Path(install_dir)
        self.resolver = resolver
        self.download_base_url = download_base_url.rstrip("/")
        self.request_timeout_seconds = request_timeout_seconds
        self.registry = VersionRegistry(self.install_dir)
        self._session_factory = session_factory or default_session_factory

    @property
    def link_path(self) -> Path:
        return self.install_dir / self.resolver.binary_name

    def versioned_path(self, version: str) -> Path:
        return self.install_dir / self.resolver.versioned_binary_name(version)

    def part_path(self, version: str) -> Path:
        versioned = self.versioned_path(version)
        return versioned.with_name(versioned.name + PART_SUFFIX)

    def download_url(self, version_tag: str, version_clean: str) -> str:
        return f"{self.download_base_url}/{version_tag}/{self.resolver.asset_name(version_clean)}"

    def _resume_offset(self, part_path: Path, expected_size: int, throttle: ProgressThrottle) -> int:
        try:
            offset = part_path.stat().st_size
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            return 0

        if offset == 0:
            try:
                part_path.unlink()
            except FileNotFoundError:  # policy_guard: allow-silent-handler
                pass
            return 0

        percent = round(offset / expected_size * 100) if expected_size > 0 else 0
        logger.info("Found partial download: %d / %d bytes (%d%%), resuming...", offset, expected_size, percent)
        throttle.report_now(offset)
        return offset

    async def download_binary(
        self,
        version_tag: str,
        version_clean: str,
        link_path: Union[str, Path],
        expected_size: int,
        expected_hash: str = "",
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Download, verify and install ``version_clean``, then publish it at ``link_path``.

        Args:
            version_tag: Release tag used in the download URL (e.g. ``v1.9.0``)
            version_clean: Version used in filenames (e.g. ``1.9.0``)
            link_path: Stable link to repoint at the new binary
            expected_size: Asset size from the release descriptor
            expected_hash: Hex SHA-256 from the release descriptor, or ``""``
            on_progress: Called with ``(downloaded, total)`` at most every 100ms

        Returns:
            Path of the installed versioned binary

        Raises:
            DownloadFailedError: Transport, status or write failure; ``.part`` is kept
            TooManyRedirectsError: Redirect chain exceeded the bound
            IntegrityError: Completed file does not match size/hash; ``.part`` is removed
            FinalizeFailedError: Rename or link update failed
        """
        self.install_dir.mkdir(parents=True, exist_ok=True)
        versioned_path = self.versioned_path(version_clean)
        part_path = self.part_path(version_clean)
        url = self.download_url(version_tag, version_clean)

        throttle = ProgressThrottle(expected_size, on_progress)
        offset = self._resume_offset(part_path, expected_size, throttle)
        logger.info("Downloading server from: %s", url)

        timeout = build_timeout(None, sock_read=self.request_timeout_seconds)
        try:
            async with self._session_factory(timeout=timeout) as session:
                outcome = await RangeDownload(session, url, part_path, offset, throttle).run()
        except DownloadFailedError:
            raise
        except NETWORK_ERROR_TYPES as exc:
            raise DownloadFailedError(f"Download failed: {describe_network_error(exc)}", url=url) from exc
        except ValueError as exc:
            raise DownloadFailedError(f"Download failed: {exc}", url=url) from exc

        if outcome is DownloadOutcome.STREAMED:
            throttle.report_now(expected_size)

        await self._check_part(part_path, expected_size, expected_hash)
        promote_download(part_path, versioned_path, Path(link_path), self.resolver)
        return versioned_path

    async def _check_part(self, part_path: Path, expected_size: int, expected_hash: str) -> None:
        try:
            actual_size = part_path.stat().st_size
        except OSError as exc:
            raise FinalizeFailedError(f"Failed to finalize download: {exc}") from exc

        if expected_size > 0 and actual_size < expected_size:
            raise DownloadFailedError(
                f"Download incomplete: {actual_size} / {expected_size} bytes",
                actual_size=actual_size,
                expected_size=expected_size,
            )

        problem = None
        if expected_size > 0 and actual_size > expected_size:
            problem = f"size {actual_size} exceeds expected {expected_size}"
        elif expected_hash:
            actual_hash = await asyncio.to_thread(compute_file_sha256, part_path)
            if not hashes_match(actual_hash, expected_hash):
                problem = f"SHA256 mismatch: expected {expected_hash}, got {actual_hash}"

        if problem is not None:
            logger.error("Discarding downloaded file: %s", problem)
            self._remove_file(part_path, "corrupt partial download")
            raise IntegrityError(f"Downloaded binary failed verification: {problem}")

    def verify_integrity(self, version: str, expected_size: int) -> bool:
        """True iff the versioned file exists with exactly ``expected_size`` bytes."""
        return size_matches(self.versioned_path(version), expected_size)

    async def verify_sha256(self, version: str, expected_hash_hex: str) -> bool:
        """Compare the versioned file's SHA-256 with ``expected_hash_hex``; empty means skip."""
        if not expected_hash_hex:
            return True

        path = self.versioned_path(version)
        try:
            actual = await asyncio.to_thread(compute_file_sha256, path)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to calculate SHA256: %s", exc)
            return False

        if not hashes_match(actual, expected_hash_hex):
            logger.warning("SHA256 mismatch: expected %s, got %s", expected_hash_hex, actual)
            return False
        return True

    def _remove_file(self, path: Path, label: str) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            return False
        except OSError as exc:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            logger.warning("Failed to remove %s %s: %s", label, path.name, exc)
            return False
        return True

    def cleanup_old_versions(self, current_version: str) -> None:
        """Delete every installed version except ``current_version``, with its ``.part``."""
        for artifact in self.registry.list_artifacts():
            if artifact.version == current_version:
                continue
            if self._remove_file(artifact.path, "old version"):
                logger.info("Removed old version: %s", artifact.version)
            part = artifact.path.with_name(artifact.path.name + PART_SUFFIX)
            if self._remove_file(part, "partial download"):
                logger.info("Removed partial download: %s", artifact.version)

    def server_exists(self) -> bool:
        """True when the stable link resolves to a non-empty, executable file."""
        try:
            stats = self.link_path.stat()
        except OSError:  # policy_guard: allow-silent-handler
            return False

        if stats.st_size == 0:
            logger.warning("Server binary is empty (0 bytes)")
            return False
        if not self.resolver.info.is_windows and not stats.st_mode & stat.S_IXUSR:
            logger.warning("Server binary is not executable")
            return False
        return True

    def ensure_link(self, version: str) -> bool:
        """Recreate the stable link for ``version`` when it is missing; True if recreated."""
        if self.server_exists():
            return False
        logger.info("Symlink missing, recreating...")
        try:
            self.resolver.create_file_link(self.versioned_path(version), self.link_path)
        except OSError as exc:
            raise FinalizeFailedError(f"Failed to recreate server link: {exc}") from exc
        logger.info("Symlink recreated")
        return True


__all__ = ["PART_SUFFIX", "BinaryInstaller"]
