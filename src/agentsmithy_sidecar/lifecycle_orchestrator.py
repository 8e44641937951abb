"""
Lifecycle orchestrator for the AgentSmithy sidecar.

Coordinates release lookup, installation, process supervision and the
post-readiness health probe. Concurrent ``start_server`` calls share one
start attempt. The orchestrator never renders UI; it publishes
``UserNotice`` and ``ConfigInvalidEvent`` payloads to subscribers.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .async_helpers import BackgroundTasks
from .binary_installer import BinaryInstaller
from .binary_installer_helpers import ProgressCallback
from .config import SidecarSettings
from .exceptions import DownloadCancelledError, NotStartingOrRunningError
from .http_utils import SessionFactory
from .lifecycle_orchestrator_helpers import (
    ConfigInvalidEvent,
    ConfirmDownload,
    EventEmitter,
    HealthProbe,
    UserNotice,
    VersionReconciler,
)
from .lock_coordinator import LockCoordinator
from .platform_resolver import PlatformResolver
from .process_supervisor import ProcessSupervisor, SidecarStatus, SupervisorState
from .process_supervisor_helpers import resolve_server_url
from .release_fetcher import ReleaseFetcher

logger = logging.getLogger(__name__)

WorkspaceRoot = Optional[Union[str, Path]]
WorkspaceRootProvider = Callable[[], WorkspaceRoot]

NO_WORKSPACE_MESSAGE = "Please open a workspace folder to use AgentSmithy"
START_FAILED_MESSAGE = "Failed to start AgentSmithy server. Check the logs for details."
UNEXPECTED_EXIT_MESSAGE = "AgentSmithy server stopped unexpectedly. Check the logs for details."


class LifecycleOrchestrator:
    """Single entry point for installing, starting and stopping the sidecar."""

    def __init__(
        self,
        settings: Optional[SidecarSettings] = None,
        *,
        workspace_root_provider: WorkspaceRootProvider,
        confirm_download: ConfirmDownload,
        resolver: Optional[PlatformResolver] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        session_factory: Optional[SessionFactory] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.settings = settings or SidecarSettings.from_env()
        self.settings.install_dir.mkdir(parents=True, exist_ok=True)
        self._workspace_root_provider = workspace_root_provider

        self.on_server_ready: EventEmitter[None] = EventEmitter("server_ready")
        self.on_config_invalid: EventEmitter[ConfigInvalidEvent] = EventEmitter("config_invalid")
        self.on_user_notice: EventEmitter[UserNotice] = EventEmitter("user_notice")

        self.resolver = resolver or PlatformResolver()
        self.fetcher = ReleaseFetcher(
            self.settings.release_api_url,
            self.resolver,
            request_timeout_seconds=self.settings.request_timeout_seconds,
            session_factory=session_factory,
        )
        self.installer = BinaryInstaller(
            self.settings.install_dir,
            self.resolver,
            download_base_url=self.settings.download_base_url,
            request_timeout_seconds=self.settings.request_timeout_seconds,
            session_factory=session_factory,
        )
        self.lock = LockCoordinator(
            self.settings.lock_path,
            max_attempts=self.settings.lock_max_attempts,
            retry_interval_seconds=self.settings.lock_retry_interval_seconds,
        )
        self.reconciler = VersionReconciler(
            self.fetcher,
            self.installer,
            self.lock,
            confirm_download,
            on_progress=on_progress,
            notify=self.on_user_notice.emit,
        )
        self.supervisor = supervisor or ProcessSupervisor(
            ide_name=self.settings.ide_name,
            readiness_timeout_seconds=self.settings.readiness_timeout_seconds,
            readiness_poll_interval_seconds=self.settings.readiness_poll_interval_seconds,
            stop_grace_seconds=self.settings.stop_grace_seconds,
        )
        self.health_probe = HealthProbe(
            timeout_seconds=self.settings.health_timeout_seconds,
            session_factory=session_factory,
        )

        self._start_task: Optional[asyncio.Task[None]] = None
        self._background = BackgroundTasks()

    @property
    def starting(self) -> bool:
        return self._start_task is not None

    def _is_running(self) -> bool:
        return self.supervisor.state is SupervisorState.RUNNING and self.supervisor.is_alive()

    async def start_server(self) -> None:
        """
        Install or update the binary if needed, then start the sidecar.

        Every caller that arrives while a start is in flight awaits that same start.
        """
        if self._start_task is not None:
            logger.info("Server is already starting, waiting for existing start to complete")
            await asyncio.shield(self._start_task)
            return
        if self._is_running():
            logger.info("Server is already running")
            return

        task = asyncio.get_running_loop().create_task(self._start(), name="agentsmithy-start")
        self._start_task = task
        task.add_done_callback(self._clear_start_task)
        await asyncio.shield(task)

    def _clear_start_task(self, task: asyncio.Task[None]) -> None:
        if self._start_task is task:
            self._start_task = None
        if not task.cancelled():
            # Mark as retrieved; callers observe the error through shield()
            task.exception()

    async def _start(self) -> None:
        workspace_root = self._workspace_root_provider()
        if not workspace_root:
            logger.error("No workspace folder open; cannot start server")
            self._notify("error", NO_WORKSPACE_MESSAGE)
            return

        try:
            server_path = await self.ensure_server()
            await self.supervisor.start(
                server_path,
                workspace_root,
                on_ready=lambda: self._handle_ready(workspace_root),
                on_error=self._handle_process_error,
            )
        except DownloadCancelledError:
            logger.info("Server start cancelled: download declined")
            self._notify("error", START_FAILED_MESSAGE)
            await self.supervisor.stop()
            raise
        except Exception as exc:  # policy_guard: allow-broad-except
            logger.error("Failed to start server: %s", exc)
            self._notify("error", START_FAILED_MESSAGE)
            await self.supervisor.stop()
            raise

    async def ensure_server(self) -> Path:
        """Reconcile the installed binary with the latest release; returns the stable link path."""
        return await self.reconciler.ensure_server()

    def _handle_ready(self, workspace_root: Union[str, Path]) -> None:
        self.on_server_ready.emit(None)
        self._background.spawn(self._check_health(workspace_root), name="agentsmithy-health")

    def _handle_process_error(self, error: BaseException) -> None:
        logger.error("Server process error: %s", error)
        if self._start_task is None:
            self._notify("error", UNEXPECTED_EXIT_MESSAGE)

    async def _check_health(self, workspace_root: Union[str, Path]) -> None:
        server_url = resolve_server_url(workspace_root, self.settings.default_server_url)
        event = await self.health_probe.check(server_url)
        if event is not None:
            self.on_config_invalid.emit(event)

    async def wait_for_ready(self) -> None:
        """
        Raises:
            NotStartingOrRunningError: No start is in flight and the sidecar is not running
        """
        if self._is_running():
            return
        if self._start_task is not None:
            await asyncio.shield(self._start_task)
            return
        raise NotStartingOrRunningError()

    def is_ready(self) -> bool:
        return self._start_task is None and self._is_running()

    def get_status(self) -> SidecarStatus:
        return self.supervisor.get_status(self._workspace_root_provider())

    def server_url(self) -> str:
        return resolve_server_url(self._workspace_root_provider(), self.settings.default_server_url)

    async def stop_server(self) -> None:
        await self.supervisor.stop()

    async def restart_server(self) -> None:
        if self.supervisor.adopted and self._is_running():
            # Stopping only releases an adopted sidecar; the next start would adopt it again
            logger.info(
                "Keeping adopted server (PID %s); it was not started by this instance",
                self.supervisor.get_pid(),
            )
            return
        logger.info("Restarting server...")
        await self.stop_server()
        await self.start_server()

    async def dispose(self) -> None:
        """Stop the sidecar and drop every subscriber."""
        self._background.cancel_all()
        await self.supervisor.stop()
        self.on_server_ready.clear()
        self.on_config_invalid.clear()
        self.on_user_notice.clear()

    def _notify(self, level: str, message: str) -> None:
        self.on_user_notice.emit(UserNotice(level=level, message=message))


__all__ = ["LifecycleOrchestrator", "WorkspaceRootProvider"]
