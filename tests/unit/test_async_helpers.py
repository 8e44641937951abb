"""Tests for BackgroundTasks."""

import asyncio

import pytest

from agentsmithy_sidecar.async_helpers import BackgroundTasks, _resolve_coroutine


async def sample_coro():
    return "success"


def test_resolve_coroutine_rejects_non_coroutine_factory():
    with pytest.raises(TypeError, match="must return a coroutine"):
        _resolve_coroutine(lambda: "nope")


def test_resolve_coroutine_rejects_other_input():
    with pytest.raises(TypeError, match="expects a coroutine or a callable"):
        _resolve_coroutine(42)


@pytest.mark.asyncio
async def test_spawn_tracks_until_done():
    tasks = BackgroundTasks()

    task = tasks.spawn(sample_coro, name="sample")
    assert len(tasks) == 1
    await tasks.drain()

    assert task.result() == "success"
    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_failed_task_is_logged(caplog):
    tasks = BackgroundTasks()

    async def boom():
        raise RuntimeError("bad")

    tasks.spawn(boom(), name="boom")
    await tasks.drain()
    await asyncio.sleep(0)

    assert "Background task boom failed: bad" in caplog.text


@pytest.mark.asyncio
async def test_cancel_all():
    tasks = BackgroundTasks()
    task = tasks.spawn(asyncio.sleep(10))

    tasks.cancel_all()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
