"""Spawn, watch and stop the AgentSmithy sidecar process.

A single supervisor owns at most one sidecar. ``start`` first looks for a
live sidecar already serving the workspace and adopts it instead of spawning
a second one. Readiness is announced by the sidecar through the workspace
status record, never by stdout parsing.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .config import status_file_path
from .exceptions import ServerExitedError, ServerSpawnError
from .logging_config import get_sidecar_output_logger
from .process_supervisor_helpers import (
    pump_stream,
    read_status_record,
    terminate_child,
    wait_for_ready,
)
from .process_utils import is_process_alive

logger = logging.getLogger(__name__)

STREAM_LIMIT_BYTES = 1024 * 1024
STDERR_PREFIX = "[stderr] "

ReadyCallback = Callable[[], None]
ErrorCallback = Callable[[BaseException], None]


class SupervisorState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class SidecarStatus:
    running: bool
    port: Optional[int] = None
    pid: Optional[int] = None


class ProcessSupervisor:
    """Owns the lifetime of one sidecar process."""

    def __init__(
        self,
        *,
        ide_name: str = "vscode",
        readiness_timeout_seconds: float = 30.0,
        readiness_poll_interval_seconds: float = 0.5,
        stop_grace_seconds: float = 5.0,
    ) -> None:
        self._ide_name = ide_name
        self._readiness_timeout = readiness_timeout_seconds
        self._readiness_poll = readiness_poll_interval_seconds
        self._stop_grace = stop_grace_seconds

        self._state = SupervisorState.IDLE
        self._process: Optional[asyncio.subprocess.Process] = None
        self._pid: Optional[int] = None
        self._adopted = False
        self._shutting_down = False
        self._io_tasks: List[asyncio.Task[None]] = []

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def adopted(self) -> bool:
        """True when the current sidecar was found running rather than spawned."""
        return self._adopted

    def get_pid(self) -> Optional[int]:
        return self._pid

    def is_alive(self) -> bool:
        if self._process is not None:
            return self._process.returncode is None
        if self._adopted:
            return is_process_alive(self._pid)
        return False

    async def start(
        self,
        server_path: Union[str, Path],
        workdir: Union[str, Path],
        on_ready: ReadyCallback,
        on_error: ErrorCallback,
    ) -> None:
        """
        Launch the sidecar and wait for it to report readiness.

        Raises:
            ServerSpawnError: The executable could not be launched
            ServerExitedError: The child exited before reporting readiness
            ServerStartTimeoutError: No ready record within the readiness timeout
        """
        status_path = status_file_path(workdir)
        existing = read_status_record(status_path)
        if existing is not None and existing.server_pid is not None and is_process_alive(existing.server_pid):
            logger.info("Server already running (PID %d), reusing it", existing.server_pid)
            self._pid = existing.server_pid
            self._adopted = True
            self._state = SupervisorState.RUNNING
            on_ready()
            return

        previous_pid = existing.server_pid if existing is not None else None
        server_path = Path(server_path)
        logger.info("Starting server: %s", server_path)
        self._state = SupervisorState.STARTING
        self._shutting_down = False
        self._adopted = False

        try:
            process = await asyncio.create_subprocess_exec(
                str(server_path),
                "--workdir",
                str(workdir),
                "--ide",
                self._ide_name,
                cwd=str(server_path.parent),
                env=dict(os.environ),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT_BYTES,
            )
        except OSError as exc:
            self._state = SupervisorState.IDLE
            error = ServerSpawnError(f"Failed to start server: {exc}", server_path=str(server_path))
            logger.error("Failed to start server: %s", exc)
            on_error(error)
            raise error from exc

        self._process = process
        self._pid = process.pid
        self._attach_io(process)
        watcher = asyncio.get_running_loop().create_task(
            self._watch_exit(process, on_error), name="agentsmithy-exit-watcher"
        )
        self._io_tasks.append(watcher)

        pid = await wait_for_ready(
            status_path,
            previous_pid,
            timeout_seconds=self._readiness_timeout,
            poll_interval_seconds=self._readiness_poll,
            has_exited=lambda: process.returncode is not None,
        )
        if process is not self._process:
            raise ServerExitedError("Server process was stopped before becoming ready")
        self._pid = pid
        self._state = SupervisorState.RUNNING
        logger.info("Server is ready (PID %d)", pid)
        on_ready()

    def _attach_io(self, process: asyncio.subprocess.Process) -> None:
        sink = get_sidecar_output_logger()
        loop = asyncio.get_running_loop()
        if process.stdout is not None:
            self._io_tasks.append(loop.create_task(pump_stream(process.stdout, sink), name="agentsmithy-stdout"))
        if process.stderr is not None:
            self._io_tasks.append(
                loop.create_task(pump_stream(process.stderr, sink, STDERR_PREFIX), name="agentsmithy-stderr")
            )

    async def _watch_exit(self, process: asyncio.subprocess.Process, on_error: ErrorCallback) -> None:
        code = await process.wait()
        if process is not self._process:
            return
        if not self._shutting_down:
            if code == 0:
                logger.info("Server process exited with code %s", code)
            else:
                logger.warning("Server process exited with code %s", code)
                on_error(ServerExitedError(f"Server process exited with code {code}", exit_code=code))
        self._process = None
        self._pid = None
        self._state = SupervisorState.IDLE

    async def stop(self) -> None:
        """Stop the spawned sidecar. Never raises; always returns to IDLE."""
        process = self._process
        if process is None and self._pid is None:
            await self._settle_io()
            self._state = SupervisorState.IDLE
            return

        self._shutting_down = True
        self._state = SupervisorState.STOPPING
        try:
            if process is not None:
                logger.info("Stopping server...")
                code = await terminate_child(process, self._stop_grace)
                logger.info("Server stopped with code %s", code)
            else:
                logger.info("Releasing adopted server (PID %s)", self._pid)
        except (OSError, RuntimeError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Error while stopping server: %s", exc)
        finally:
            await self._settle_io()
            self._process = None
            self._pid = None
            self._adopted = False
            self._shutting_down = False
            self._state = SupervisorState.IDLE

    async def _settle_io(self) -> None:
        tasks, self._io_tasks = self._io_tasks, []
        pending = [task for task in tasks if not task.done() and task is not asyncio.current_task()]
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=1.0)
        for task in still_running:
            task.cancel()

    def get_status(self, workdir: Optional[Union[str, Path]]) -> SidecarStatus:
        if not workdir:
            return SidecarStatus(running=False)
        record = read_status_record(status_file_path(workdir))
        if record is not None:
            if record.server_pid is not None:
                running = is_process_alive(record.server_pid)
            else:
                running = self.is_alive()
            return SidecarStatus(running=running, port=record.port, pid=record.server_pid)
        return SidecarStatus(running=self.is_alive(), pid=self._pid)


__all__ = ["ProcessSupervisor", "SidecarStatus", "SupervisorState"]
