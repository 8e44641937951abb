"""
Installed-version discovery.

Versioned binaries live side by side in the install directory, each named
``<prefix>-<os>-<arch>-X.Y.Z[.exe]``. Versions are derived from those names
on demand; nothing else records what is installed.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import cmp_to_key
from pathlib import Path
from typing import List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

_FILENAME_VERSION = re.compile(r"-(v?\d+\.\d+\.\d+)(?:\.exe)?$")
_VERSION = re.compile(r"^[=v]*(\d+)\.(\d+)\.(\d+)$")

SemVer = Tuple[int, int, int]


@dataclass(frozen=True)
class InstalledArtifact:
    """A versioned binary found in the install directory."""

    version: str
    path: Path


def parse_semver(version: str) -> SemVer:
    """Split ``X.Y.Z`` (optionally ``v``-prefixed) into integers."""
    match = _VERSION.match(version.strip())
    if match is None:
        raise ValueError(f"Invalid semantic version: {version!r}")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def clean_version(version: str) -> str:
    """Normalize a release tag like ``v1.9.0`` to ``1.9.0``.

    Strings that are not a plain three-part version only lose a leading ``v``.
    """
    try:
        major, minor, patch = parse_semver(version)
    except ValueError:  # policy_guard: allow-silent-handler
        stripped = version.strip()
        return stripped[1:] if stripped.startswith("v") else stripped
    return f"{major}.{minor}.{patch}"


def parse_version_from_filename(filename: str) -> Optional[str]:
    """
    Extract the trailing version from an installed binary's filename.

    Example: ``agentsmithy-linux-amd64-1.8.4`` -> ``1.8.4``
    """
    match = _FILENAME_VERSION.search(filename)
    if match is None:
        return None
    return clean_version(match.group(1))


def compare_versions(a: str, b: str) -> int:
    """Return 1 if ``a`` > ``b``, -1 if ``a`` < ``b``, 0 if equal."""
    left = parse_semver(a)
    right = parse_semver(b)
    return (left > right) - (left < right)


class VersionRegistry:
    """Lists versioned binaries in an install directory, newest first."""

    def __init__(self, install_dir: Union[str, Path]):
        self.install_dir = Path(install_dir)

    def _scan(self) -> List[InstalledArtifact]:
        try:
            names = os.listdir(self.install_dir)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Install directory %s not readable: %s", self.install_dir, exc)
            return []

        artifacts = {}
        for name in names:
            version = parse_version_from_filename(name)
            if version is not None:
                artifacts.setdefault(version, InstalledArtifact(version=version, path=self.install_dir / name))
        return list(artifacts.values())

    def list_artifacts(self) -> List[InstalledArtifact]:
        artifacts = self._scan()
        artifacts.sort(key=cmp_to_key(lambda a, b: compare_versions(b.version, a.version)))
        return artifacts

    def list_installed(self) -> List[str]:
        """All installed versions, newest first; an unreadable directory yields ``[]``."""
        return [artifact.version for artifact in self.list_artifacts()]

    def latest_installed(self) -> Optional[str]:
        versions = self.list_installed()
        return versions[0] if versions else None


__all__ = [
    "InstalledArtifact",
    "SemVer",
    "VersionRegistry",
    "clean_version",
    "compare_versions",
    "parse_semver",
    "parse_version_from_filename",
]
