"""Tests for the tolerant status-record reader."""

import pytest

from agentsmithy_sidecar.process_supervisor_helpers import read_status_record, resolve_server_url
from tests.helpers.sidecar_builders import write_status

DEFAULT_URL = "http://localhost:8765"


def test_reads_complete_record(workspace):
    path = write_status(workspace, port=8770, pid=4321, status="ready")

    record = read_status_record(path)

    assert record.port == 8770
    assert record.server_pid == 4321
    assert record.server_status == "ready"
    assert record.is_ready


def test_missing_file_is_no_record(workspace):
    assert read_status_record(workspace / ".agentsmithy" / "status.json") is None


@pytest.mark.parametrize("raw", [b"", b"{half", b"[1, 2]", b'"ready"'])
def test_unusable_content_is_no_record(workspace, raw):
    assert read_status_record(write_status(workspace, raw=raw)) is None


def test_mistyped_fields_are_absent(workspace):
    path = write_status(workspace, raw=b'{"port": true, "server_pid": "12", "server_status": 5}')

    record = read_status_record(path)

    assert record.port is None
    assert record.server_pid is None
    assert record.server_status is None
    assert not record.is_ready


def test_resolve_server_url_uses_recorded_port(workspace):
    write_status(workspace, port=8777)

    assert resolve_server_url(workspace, DEFAULT_URL) == "http://localhost:8777"


def test_resolve_server_url_accepts_string_port(workspace):
    write_status(workspace, raw=b'{"port": " 9001 "}')

    assert resolve_server_url(workspace, DEFAULT_URL) == "http://localhost:9001"


@pytest.mark.parametrize("raw", [b"{}", b'{"port": ""}', b"garbage"])
def test_resolve_server_url_falls_back(workspace, raw):
    write_status(workspace, raw=raw)

    assert resolve_server_url(workspace, DEFAULT_URL) == DEFAULT_URL


def test_resolve_server_url_without_workspace():
    assert resolve_server_url(None, DEFAULT_URL) == DEFAULT_URL
