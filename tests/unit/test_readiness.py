"""Tests for the status-record readiness wait."""

import asyncio

import pytest

from agentsmithy_sidecar.exceptions import ServerExitedError, ServerStartTimeoutError
from agentsmithy_sidecar.process_supervisor_helpers import wait_for_ready
from tests.helpers.sidecar_builders import write_status


def _status_path(workspace):
    return workspace / ".agentsmithy" / "status.json"


@pytest.mark.asyncio
async def test_returns_new_pid_once_ready(workspace):
    write_status(workspace, port=1, pid=2000, status="ready")

    pid = await wait_for_ready(_status_path(workspace), 1000, timeout_seconds=1, poll_interval_seconds=0.01)

    assert pid == 2000


@pytest.mark.asyncio
async def test_stale_pid_is_not_readiness(workspace):
    write_status(workspace, port=1, pid=1000, status="ready")

    async def announce_later():
        await asyncio.sleep(0.05)
        write_status(workspace, port=1, pid=2000, status="ready")

    writer = asyncio.create_task(announce_later())
    pid = await wait_for_ready(_status_path(workspace), 1000, timeout_seconds=2, poll_interval_seconds=0.01)
    await writer

    assert pid == 2000


@pytest.mark.asyncio
async def test_times_out_without_ready_record(workspace):
    write_status(workspace, port=1, pid=2000, status="starting")

    with pytest.raises(ServerStartTimeoutError):
        await wait_for_ready(_status_path(workspace), None, timeout_seconds=0.1, poll_interval_seconds=0.02)


@pytest.mark.asyncio
async def test_stops_early_when_child_exits(workspace):
    with pytest.raises(ServerExitedError):
        await wait_for_ready(
            _status_path(workspace),
            None,
            timeout_seconds=30,
            poll_interval_seconds=0.01,
            has_exited=lambda: True,
        )
