"""Runner port: the contract every plugin runner honours.

The plugin framework depends on this protocol, never on a concrete runner.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from plugrun.runner.types import Addr, RunnerState


@runtime_checkable
class Runner(Protocol):
    """Starts, supervises and terminates one plugin workload."""

    @property
    def state(self) -> RunnerState: ...

    async def start(self) -> None:
        """Launch the workload. Called at most once."""
        ...

    async def wait(self) -> None:
        """Block until the workload terminates; raise on abnormal exit."""
        ...

    async def kill(self) -> None:
        """Request termination and release owned resources. Idempotent."""
        ...

    @property
    def stdout(self) -> asyncio.StreamReader: ...

    @property
    def stderr(self) -> asyncio.StreamReader: ...

    def resolve_addr(self, network: str, address: str) -> Addr:
        """Turn an address advertised by the plugin into one the host can dial."""
        ...

    @property
    def name(self) -> str: ...

    @property
    def id(self) -> str: ...
