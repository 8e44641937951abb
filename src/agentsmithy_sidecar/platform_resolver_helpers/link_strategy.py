from __future__ import annotations

from pathlib import Path
from typing import Protocol, Union

PathLike = Union[str, Path]


class LinkStrategy(Protocol):
    """Minimal contract for publishing the stable binary link."""

    def create_file_link(self, target_path: PathLike, link_path: PathLike) -> None: ...

    def make_executable(self, file_path: PathLike) -> None: ...


def staging_path(link_path: Path) -> Path:
    """Sibling name a new link is built under before it replaces ``link_path``."""
    return link_path.with_name(f".{link_path.name}.tmp")


def remove_if_present(path: Path) -> None:
    """Unlink ``path`` (including a dangling symlink); a missing entry is fine."""
    try:
        path.unlink()
    except FileNotFoundError:  # policy_guard: allow-silent-handler
        return
