"""Bounded in-process pipes backed by OS pipes.

The reader side is a plain asyncio.StreamReader, so consumers of a container's
streams see the same type as a local child's stdout. Writers block in
``drain()`` once the kernel pipe and the reader's buffer are full.
"""

from __future__ import annotations

import asyncio
import os

PIPE_LIMIT = 64 * 1024  # reader buffer, bytes


async def open_pipe(limit: int = PIPE_LIMIT) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    loop = asyncio.get_running_loop()
    read_fd, write_fd = os.pipe()
    read_file = open(read_fd, "rb", buffering=0)
    write_file = open(write_fd, "wb", buffering=0)

    try:
        reader = asyncio.StreamReader(limit=limit)
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), read_file)
    except BaseException:
        read_file.close()
        write_file.close()
        raise

    try:
        transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, write_file)
    except BaseException:
        write_file.close()
        raise
    writer = asyncio.StreamWriter(transport, protocol, None, loop)
    return reader, writer
