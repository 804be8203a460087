import asyncio
import struct
from typing import Any

import pytest

from plugrun.engine.types import WaitStatus


def encode_frame(stream: int, payload: bytes) -> bytes:
    """Encode one frame of the engine's multiplexed log format."""
    return struct.pack(">BxxxL", stream, len(payload)) + payload


class FakeLogStream:
    """Stands in for the streaming httpx response of a followed log request."""

    def __init__(
        self,
        chunks: list[bytes],
        stopped: asyncio.Event | None,
        close_error: Exception | None = None,
    ) -> None:
        self._chunks = chunks
        self._stopped = stopped
        self._close_error = close_error
        self.closed = False

    async def aiter_raw(self):
        for chunk in self._chunks:
            yield chunk
        if self._stopped is not None:
            await self._stopped.wait()

    async def aclose(self) -> None:
        self.closed = True
        if self._close_error is not None:
            raise self._close_error


class FakeEngineClient:
    """In-memory engine recording the calls a runner makes."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.container_id = "c0ffee"
        self.created_body: dict[str, Any] | None = None
        self.log_chunks: list[bytes] = []
        self.follow_until_stop = False
        self.wait_status = WaitStatus(StatusCode=0)
        self.errors: dict[str, Exception] = {}
        self.closed = False
        self.log_stream: FakeLogStream | None = None
        self.log_close_error: Exception | None = None
        # When set, start_container blocks until the event fires
        self.start_gate: asyncio.Event | None = None
        self._stopped = asyncio.Event()

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    async def create_container(self, body: dict[str, Any], name: str | None = None) -> str:
        self._call("create")
        self.created_body = body
        return self.container_id

    async def start_container(self, container_id: str) -> None:
        if self.start_gate is not None:
            await self.start_gate.wait()
        self._call("start")

    async def container_logs(self, container_id: str, follow: bool = True) -> FakeLogStream:
        self._call("logs")
        self.log_stream = FakeLogStream(
            self.log_chunks,
            self._stopped if self.follow_until_stop else None,
            close_error=self.log_close_error,
        )
        return self.log_stream

    async def wait_container(self, container_id: str, condition: str = "not-running") -> WaitStatus:
        self._call("wait")
        if self.follow_until_stop:
            await self._stopped.wait()
        return self.wait_status

    async def stop_container(self, container_id: str, timeout: int | None = None) -> None:
        self._call("stop")
        self._stopped.set()

    async def remove_container(self, container_id: str, force: bool = True) -> None:
        self._call("remove")

    async def close(self) -> None:
        self.calls.append("close")
        self.closed = True


@pytest.fixture
def fake_engine() -> FakeEngineClient:
    return FakeEngineClient()


@pytest.fixture
def socket_dir(tmp_path):
    """Host rendezvous directory owned by a single runner."""
    path = tmp_path / "plugin-dir"
    path.mkdir()
    return path


@pytest.fixture
def frame():
    return encode_frame
