"""Symbolic-link publishing for Linux and macOS."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .link_strategy import PathLike, remove_if_present, staging_path

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755


class UnixLinkStrategy:
    """Points the stable link at the versioned binary with a relative symlink."""

    def create_file_link(self, target_path: PathLike, link_path: PathLike) -> None:
        link = Path(link_path)
        staged = staging_path(link)
        remove_if_present(staged)

        # Same directory, so only the basename is stored in the link
        os.symlink(Path(target_path).name, staged)
        os.replace(staged, link)
        self.make_executable(link)
        logger.debug("Linked %s -> %s", link, Path(target_path).name)

    def make_executable(self, file_path: PathLike) -> None:
        try:
            os.chmod(file_path, EXECUTABLE_MODE)
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            logger.debug("Skipping chmod of missing %s", file_path)
