"""Exception hierarchy for the sidecar lifecycle.

Every error raised by this package derives from :class:`SidecarError`.

Exception classes support two patterns:
1. No-argument raise: raise DownloadCancelledError()
2. Contextual attributes: err = AssetNotFoundError(asset_name="x", tag="v1.0.0"); raise err
"""

from typing import Any


class SidecarError(Exception):
    """Base exception for all sidecar lifecycle errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    default_message = "Sidecar lifecycle error occurred"

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.default_message
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class UnsupportedPlatformError(SidecarError):
    """Host OS has no published sidecar build."""

    default_message = "Unsupported platform"


class ReleaseFetchError(SidecarError):
    """Release metadata could not be fetched or parsed."""

    default_message = "Failed to fetch latest release"


class AssetNotFoundError(SidecarError):
    """Release does not carry an asset for this platform."""

    default_message = "Release asset not found"


class DownloadFailedError(SidecarError):
    """Binary download did not complete; any partial file is kept for resume."""

    default_message = "Download failed"


class TooManyRedirectsError(DownloadFailedError):
    """Download redirected more times than allowed."""

    default_message = "Too many redirects"


class IntegrityError(DownloadFailedError):
    """Downloaded bytes do not match the release descriptor."""

    default_message = "Downloaded binary failed integrity verification"


class FinalizeFailedError(SidecarError):
    """Promotion of the downloaded file or link update failed."""

    default_message = "Failed to finalize download"


class DownloadCancelledError(SidecarError):
    """User declined the download or update."""

    default_message = "Server download cancelled by user"


class LockUnavailableError(SidecarError):
    """Install-directory lock is held by another live process."""

    default_message = "Failed to acquire download lock - another instance may be downloading"


class ServerStartTimeoutError(SidecarError):
    """Sidecar did not publish a ready status record in time."""

    default_message = "Server failed to report readiness within timeout period"


class ServerSpawnError(SidecarError):
    """Sidecar executable could not be launched."""

    default_message = "Server process failed to start"


class ServerExitedError(SidecarError):
    """Sidecar process exited before reporting readiness."""

    default_message = "Server process exited before becoming ready"


class NotStartingOrRunningError(SidecarError):
    """Caller waited on a sidecar that is neither starting nor running."""

    default_message = "Server is not starting or running"


__all__ = [
    "AssetNotFoundError",
    "DownloadCancelledError",
    "DownloadFailedError",
    "FinalizeFailedError",
    "IntegrityError",
    "LockUnavailableError",
    "NotStartingOrRunningError",
    "ReleaseFetchError",
    "ServerExitedError",
    "ServerSpawnError",
    "ServerStartTimeoutError",
    "SidecarError",
    "TooManyRedirectsError",
    "UnsupportedPlatformError",
]
