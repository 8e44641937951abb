"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

# Keep settings built from the environment fast and away from the real home directory
os.environ.setdefault("AGENTSMITHY_LOCK_RETRY_SECONDS", "0.01")
os.environ.setdefault("AGENTSMITHY_READY_POLL_SECONDS", "0.05")


@pytest.fixture
def install_dir(tmp_path):
    path = tmp_path / "server"
    path.mkdir()
    return path


@pytest.fixture
def workspace(tmp_path):
    path = tmp_path / "workspace"
    path.mkdir()
    return path
