"""Collaborators used by :class:`~agentsmithy_sidecar.lifecycle_orchestrator.LifecycleOrchestrator`."""

from .events import ConfigInvalidEvent, EventEmitter, UserNotice
from .health_probe import HealthProbe, extract_config_errors
from .prompts import ConfirmDownload, DownloadPrompt, format_file_size
from .version_reconciler import VersionReconciler

__all__ = [
    "ConfigInvalidEvent",
    "ConfirmDownload",
    "DownloadPrompt",
    "EventEmitter",
    "HealthProbe",
    "UserNotice",
    "VersionReconciler",
    "extract_config_errors",
    "format_file_size",
]
