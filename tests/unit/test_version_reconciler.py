"""Tests for install/repair/update decisions."""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentsmithy_sidecar.binary_installer import BinaryInstaller
from agentsmithy_sidecar.exceptions import DownloadCancelledError, DownloadFailedError, LockUnavailableError
from agentsmithy_sidecar.lifecycle_orchestrator_helpers import DownloadPrompt, VersionReconciler
from agentsmithy_sidecar.lock_coordinator import LockCoordinator
from tests.helpers.fake_http import FakeResponse, FakeSession, session_factory_for
from tests.helpers.sidecar_builders import install_version, linux_resolver, make_release

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="symlink publishing is POSIX behaviour")

PAYLOAD = b"sidecar-binary-v1.2"


class Harness:
    def __init__(self, install_dir, release, *, confirm=True, responses=None):
        self.install_dir = install_dir
        self.session = FakeSession(responses if responses is not None else [FakeResponse(200, PAYLOAD)])
        self.installer = BinaryInstaller(
            install_dir,
            linux_resolver(),
            download_base_url="https://downloads.example.test",
            session_factory=session_factory_for(self.session),
        )
        self.fetcher = MagicMock()
        self.fetcher.fetch_latest_release = AsyncMock(return_value=release)
        self.lock = LockCoordinator(install_dir / ".download.lock", max_attempts=2, retry_interval_seconds=0.01)
        self.confirm = AsyncMock(return_value=confirm)
        self.notices = []
        self.reconciler = VersionReconciler(
            self.fetcher,
            self.installer,
            self.lock,
            self.confirm,
            notify=self.notices.append,
        )


@pytest.mark.asyncio
async def test_same_version_intact_skips_download(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    versioned = install_version(install_dir, "1.2.0", PAYLOAD)
    harness.installer.resolver.create_file_link(versioned, harness.installer.link_path)
    link_target = os.readlink(harness.installer.link_path)

    path = await harness.reconciler.ensure_server()

    assert path == harness.installer.link_path
    assert harness.session.requests == []
    harness.confirm.assert_not_awaited()
    assert os.readlink(harness.installer.link_path) == link_target


@pytest.mark.asyncio
async def test_same_version_missing_link_is_recreated(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    install_version(install_dir, "1.2.0", PAYLOAD)

    await harness.reconciler.ensure_server()

    assert harness.session.requests == []
    assert os.readlink(harness.installer.link_path) == harness.installer.versioned_path("1.2.0").name


@pytest.mark.asyncio
async def test_same_version_corrupt_is_repaired_silently(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    install_version(install_dir, "1.2.0", b"x" * len(PAYLOAD))

    await harness.reconciler.ensure_server()

    harness.confirm.assert_not_awaited()
    assert len(harness.session.requests) == 1
    assert harness.installer.versioned_path("1.2.0").read_bytes() == PAYLOAD
    assert not (install_dir / ".download.lock").exists()


@pytest.mark.asyncio
async def test_same_version_wrong_size_is_repaired(install_dir):
    release = make_release("1.2.0", PAYLOAD, with_hash=False)
    harness = Harness(install_dir, release)
    install_version(install_dir, "1.2.0", b"short")

    await harness.reconciler.ensure_server()

    assert harness.installer.versioned_path("1.2.0").read_bytes() == PAYLOAD


@pytest.mark.asyncio
async def test_older_install_prompts_before_download(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    install_version(install_dir, "1.0.0")
    order = []
    harness.confirm.side_effect = lambda prompt: order.append(("confirm", prompt)) or True
    original_get = harness.session.get

    def recording_get(url, **kwargs):
        order.append(("download", url))
        return original_get(url, **kwargs)

    harness.session.get = recording_get

    await harness.reconciler.ensure_server()

    assert order[0] == ("confirm", DownloadPrompt(version="1.2.0", size_bytes=len(PAYLOAD), is_update=True))
    assert order[1][0] == "download"
    assert harness.installer.registry.list_installed() == ["1.2.0"]
    assert [notice.level for notice in harness.notices] == ["info"]


@pytest.mark.asyncio
async def test_declined_update_raises_and_keeps_install(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release, confirm=False)
    old = install_version(install_dir, "1.0.0")

    with pytest.raises(DownloadCancelledError):
        await harness.reconciler.ensure_server()

    assert harness.session.requests == []
    assert old.exists()


@pytest.mark.asyncio
async def test_nothing_installed_prompts_fresh_install(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)

    await harness.reconciler.ensure_server()

    prompt = harness.confirm.await_args.args[0]
    assert prompt == DownloadPrompt(version="1.2.0", size_bytes=len(PAYLOAD), is_update=False)
    assert harness.installer.server_exists()


@pytest.mark.asyncio
async def test_newer_local_install_is_kept(install_dir, caplog):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    install_version(install_dir, "2.0.0")

    with caplog.at_level("WARNING"):
        await harness.reconciler.ensure_server()

    harness.confirm.assert_not_awaited()
    assert harness.session.requests == []
    assert "newer than latest release" in caplog.text
    assert os.readlink(harness.installer.link_path) == harness.installer.versioned_path("2.0.0").name


@pytest.mark.asyncio
async def test_download_with_lock_raises_when_lock_held(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release)
    (install_dir / ".download.lock").write_text(str(os.getpid()))
    harness.lock.pid = os.getpid() + 1

    with pytest.raises(LockUnavailableError):
        await harness.reconciler.download_with_lock(release)

    assert harness.session.requests == []


@pytest.mark.asyncio
async def test_download_with_lock_releases_on_failure(install_dir):
    release = make_release("1.2.0", PAYLOAD)
    harness = Harness(install_dir, release, responses=[FakeResponse(500)])

    with pytest.raises(DownloadFailedError):
        await harness.reconciler.download_with_lock(release)

    assert not (install_dir / ".download.lock").exists()
