"""Runner domain types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class RunnerState(enum.Enum):
    NEW = "new"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"
    DEAD = "dead"


@dataclass
class Command:
    """A prepared, not yet started plugin command."""

    path: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] | None = None  # None inherits the host environment
    cwd: str | None = None

    @property
    def argv(self) -> list[str]:
        return [self.path, *self.args]


@dataclass(frozen=True)
class TCPAddr:
    host: str
    port: int

    network = "tcp"

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


@dataclass(frozen=True)
class UnixAddr:
    path: str

    network = "unix"

    def __str__(self) -> str:
        return self.path


Addr = TCPAddr | UnixAddr
