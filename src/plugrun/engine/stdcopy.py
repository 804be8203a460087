"""Demultiplexing of the engine's combined log stream.

Without a TTY the engine frames each chunk of output with an 8-byte header:
one byte naming the stream, three zero bytes, and the payload size as a
big-endian uint32.
"""

from __future__ import annotations

import asyncio
import struct
from typing import AsyncIterable

from plugrun.runner.errors import StreamDemuxError

STDIN = 0
STDOUT = 1
STDERR = 2
SYSTEMERR = 3

HEADER = struct.Struct(">BxxxL")


async def _write(writer: asyncio.StreamWriter, data: bytes) -> None:
    writer.write(data)
    await writer.drain()


async def demux(
    chunks: AsyncIterable[bytes],
    stdout: asyncio.StreamWriter,
    stderr: asyncio.StreamWriter,
) -> int:
    """Split framed chunks into stdout and stderr. Returns payload bytes written.

    Writes wait for the consumer when its pipe is full.
    """
    buf = bytearray()
    written = 0

    async for chunk in chunks:
        buf.extend(chunk)
        while len(buf) >= HEADER.size:
            stream, size = HEADER.unpack_from(buf)
            end = HEADER.size + size
            if len(buf) < end:
                break
            payload = bytes(buf[HEADER.size : end])
            del buf[:end]

            if stream in (STDIN, STDOUT):
                await _write(stdout, payload)
            elif stream == STDERR:
                await _write(stderr, payload)
            elif stream == SYSTEMERR:
                raise StreamDemuxError(f"error from daemon in stream: {payload.decode(errors='replace')}")
            else:
                raise StreamDemuxError(f"unrecognized stream: {stream}")
            written += size

    if buf:
        raise StreamDemuxError(f"log stream ended inside a frame ({len(buf)} bytes pending)")
    return written


async def copy_raw(chunks: AsyncIterable[bytes], stdout: asyncio.StreamWriter) -> int:
    """Copy an unframed (TTY) stream straight to stdout."""
    written = 0
    async for chunk in chunks:
        await _write(stdout, chunk)
        written += len(chunk)
    return written
