"""Download confirmation prompts."""

from dataclasses import dataclass
from typing import Awaitable, Callable

_UNITS = ("B", "KB", "MB", "GB")
_STEP = 1024


def format_file_size(size_bytes: int) -> str:
    """Human readable size with one decimal place, e.g. ``45.3 MB``."""
    if size_bytes < _STEP:
        return f"{size_bytes} B"
    value = float(size_bytes)
    unit_index = 0
    while value >= _STEP and unit_index < len(_UNITS) - 1:
        value /= _STEP
        unit_index += 1
    return f"{value:.1f} {_UNITS[unit_index]}"


@dataclass(frozen=True)
class DownloadPrompt:
    version: str
    size_bytes: int
    is_update: bool = False

    @property
    def message(self) -> str:
        size = format_file_size(self.size_bytes)
        if self.is_update:
            return f"AgentSmithy server update available: {self.version} ({size}). Download now?"
        return f"AgentSmithy server {self.version} needs to be downloaded ({size}). Download now?"


ConfirmDownload = Callable[[DownloadPrompt], Awaitable[bool]]


__all__ = ["ConfirmDownload", "DownloadPrompt", "format_file_size"]
