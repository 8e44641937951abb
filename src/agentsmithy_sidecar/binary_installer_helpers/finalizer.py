"""Promotion of a completed ``.part`` file to the installed binary."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..exceptions import FinalizeFailedError
from ..platform_resolver import PlatformResolver

logger = logging.getLogger(__name__)


def promote_download(part_path: Path, versioned_path: Path, link_path: Path, resolver: PlatformResolver) -> None:
    """Rename ``part_path`` over ``versioned_path`` and repoint the stable link at it."""
    try:
        try:
            versioned_path.unlink()
        except FileNotFoundError:  # policy_guard: allow-silent-handler
            pass
        os.replace(part_path, versioned_path)
        resolver.make_executable(versioned_path)
        resolver.create_file_link(versioned_path, link_path)
    except OSError as exc:
        logger.error("Failed to finalize download: %s", exc)
        raise FinalizeFailedError(f"Failed to finalize download: {exc}", path=str(versioned_path)) from exc
    logger.info("Server downloaded successfully")
