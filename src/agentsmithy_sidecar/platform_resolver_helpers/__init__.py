"""Platform-specific link strategies."""

from .link_strategy import LinkStrategy, remove_if_present, staging_path
from .unix_links import UnixLinkStrategy
from .windows_links import WindowsLinkStrategy

__all__ = ["LinkStrategy", "UnixLinkStrategy", "WindowsLinkStrategy", "remove_if_present", "staging_path"]
