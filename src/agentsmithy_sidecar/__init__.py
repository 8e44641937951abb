"""Lifecycle management for the AgentSmithy sidecar server binary."""

from .binary_installer import BinaryInstaller
from .config import SidecarSettings
from .exceptions import SidecarError
from .lifecycle_orchestrator import LifecycleOrchestrator
from .lifecycle_orchestrator_helpers import ConfigInvalidEvent, DownloadPrompt, UserNotice
from .lock_coordinator import LockCoordinator
from .platform_resolver import PlatformResolver
from .process_supervisor import ProcessSupervisor, SidecarStatus
from .release_fetcher import ReleaseDescriptor, ReleaseFetcher
from .version_registry import VersionRegistry

__version__ = "0.1.0"

__all__ = [
    "BinaryInstaller",
    "ConfigInvalidEvent",
    "DownloadPrompt",
    "LifecycleOrchestrator",
    "LockCoordinator",
    "PlatformResolver",
    "ProcessSupervisor",
    "ReleaseDescriptor",
    "ReleaseFetcher",
    "SidecarError",
    "SidecarStatus",
    "UserNotice",
    "VersionRegistry",
]
