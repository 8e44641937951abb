"""Hard-link publishing for Windows, with a copy fallback."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from .link_strategy import PathLike, remove_if_present, staging_path

logger = logging.getLogger(__name__)


class WindowsLinkStrategy:
    """Hard-links the versioned binary to the stable name, copying when linking fails."""

    def create_file_link(self, target_path: PathLike, link_path: PathLike) -> None:
        target = Path(target_path)
        link = Path(link_path)
        staged = staging_path(link)
        remove_if_present(staged)

        try:
            os.link(target, staged)
        except OSError as exc:  # policy_guard: allow-silent-handler
            # Cross-volume installs and some filesystems refuse hard links
            logger.info("Hard link failed (%s); copying %s instead", exc, target.name)
            shutil.copyfile(target, staged)
        os.replace(staged, link)

    def make_executable(self, file_path: PathLike) -> None:
        return None
