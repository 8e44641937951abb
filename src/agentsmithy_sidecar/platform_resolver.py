"""
Platform resolution for sidecar release assets.

Maps the host OS and CPU architecture onto the names used by published
releases (``agentsmithy-<os>-<arch>-<version>[.exe]``), the stable link's
filename, and the link primitive appropriate for the host.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from typing import Optional

from .exceptions import UnsupportedPlatformError
from .platform_resolver_helpers import LinkStrategy, UnixLinkStrategy, WindowsLinkStrategy
from .platform_resolver_helpers.link_strategy import PathLike
from .version_registry import clean_version

ASSET_PREFIX = "agentsmithy"
BINARY_BASENAME = "agentsmithy-agent"

OS_NAMES = {"linux": "linux", "darwin": "macos", "win32": "windows"}
ARCH_NAMES = {"x64": "amd64", "arm64": "arm64"}

# Python reports machine names that differ from the release naming inputs
_MACHINE_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


@dataclass(frozen=True)
class PlatformInfo:
    """Host identity in release-naming terms (``linux``/``darwin``/``win32``, ``x64``/``arm64``)."""

    platform: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"


def get_platform_info() -> PlatformInfo:
    """Describe the current interpreter's host."""
    os_name = "linux" if sys.platform.startswith("linux") else sys.platform
    machine = platform.machine().lower()
    return PlatformInfo(platform=os_name, arch=_MACHINE_ALIASES.get(machine, machine))


class PlatformResolver:
    """Naming and link rules for one host platform."""

    def __init__(self, info: Optional[PlatformInfo] = None, link_strategy: Optional[LinkStrategy] = None):
        self.info = info if info is not None else get_platform_info()
        if self.info.platform not in OS_NAMES:
            raise UnsupportedPlatformError(
                f"Unsupported platform: {self.info.platform}/{self.info.arch}",
                platform=self.info.platform,
                arch=self.info.arch,
            )
        if link_strategy is None:
            link_strategy = WindowsLinkStrategy() if self.info.is_windows else UnixLinkStrategy()
        self.link_strategy = link_strategy

    @property
    def extension(self) -> str:
        return ".exe" if self.info.is_windows else ""

    @property
    def binary_name(self) -> str:
        """Filename of the stable link inside the install directory."""
        return f"{BINARY_BASENAME}{self.extension}"

    @property
    def os_name(self) -> str:
        return OS_NAMES[self.info.platform]

    @property
    def arch_name(self) -> str:
        return ARCH_NAMES.get(self.info.arch, self.info.arch)

    def asset_name(self, version: str) -> str:
        """Release asset filename for ``version`` (a leading ``v`` is dropped)."""
        return f"{ASSET_PREFIX}-{self.os_name}-{self.arch_name}-{clean_version(version)}{self.extension}"

    def versioned_binary_name(self, version: str) -> str:
        """Installed filenames mirror release asset names."""
        return self.asset_name(version)

    def create_file_link(self, target_path: PathLike, link_path: PathLike) -> None:
        self.link_strategy.create_file_link(target_path, link_path)

    def make_executable(self, file_path: PathLike) -> None:
        self.link_strategy.make_executable(file_path)


__all__ = ["ARCH_NAMES", "OS_NAMES", "PlatformInfo", "PlatformResolver", "get_platform_info"]
