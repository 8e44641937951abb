import asyncio
import logging

import pytest

from agentsmithy_sidecar.process_supervisor_helpers import pump_stream
from agentsmithy_sidecar.process_supervisor_helpers.output_pump import OVERLONG_LINE_NOTICE


@pytest.mark.asyncio
async def test_pump_forwards_lines_with_prefix(caplog):
    reader = asyncio.StreamReader()
    reader.feed_data(b"first line\r\n\nsecond \xff line\n")
    reader.feed_data(b"no newline at end")
    reader.feed_eof()
    sink = logging.getLogger("tests.sidecar_output")

    with caplog.at_level(logging.INFO, logger="tests.sidecar_output"):
        await pump_stream(reader, sink, "[stderr] ")

    assert [record.getMessage() for record in caplog.records] == [
        "[stderr] first line",
        "[stderr] second � line",
        "[stderr] no newline at end",
    ]


@pytest.mark.asyncio
async def test_pump_survives_overlong_line(caplog):
    reader = asyncio.StreamReader(limit=16)
    reader.feed_data(b"x" * 40 + b"\nshort\n")
    reader.feed_eof()
    sink = logging.getLogger("tests.sidecar_output")

    with caplog.at_level(logging.INFO, logger="tests.sidecar_output"):
        await pump_stream(reader, sink)

    assert [record.getMessage() for record in caplog.records] == [OVERLONG_LINE_NOTICE, "short"]
