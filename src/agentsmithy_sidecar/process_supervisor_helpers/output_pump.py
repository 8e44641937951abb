"""Forward a child process stream to the operator log, one line at a time."""

from __future__ import annotations

import asyncio
import logging

OVERLONG_LINE_NOTICE = "<output line too long, dropped>"


async def pump_stream(stream: asyncio.StreamReader, sink: logging.Logger, prefix: str = "") -> None:
    while True:
        try:
            line = await stream.readline()
        except ValueError:  # policy_guard: allow-silent-handler
            # The reader already discarded the oversized line
            sink.warning("%s%s", prefix, OVERLONG_LINE_NOTICE)
            continue
        if not line:
            return
        text = line.decode("utf-8", errors="replace").rstrip("\r\n")
        if text:
            sink.info("%s%s", prefix, text)
