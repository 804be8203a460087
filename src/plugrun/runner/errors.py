"""Errors raised by plugin runners."""

from __future__ import annotations

import signal


class RunnerError(Exception):
    """Base class for runner errors."""


class RunnerStateError(RunnerError):
    """Operation is not legal in the runner's current state."""


class AddressError(RunnerError):
    """Unsupported network or malformed address."""


class IncompatiblePluginError(AddressError):
    """Containerized plugin advertised a socket path the host cannot reach."""

    def __init__(self, address: str) -> None:
        super().__init__(
            f"plugin is running inside container but needs an update to be compatible (advertised {address!r})"
        )
        self.address = address


class PluginExitError(RunnerError):
    """Plugin terminated with a non-zero status or by a signal."""

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        if exit_code < 0:
            try:
                name = signal.Signals(-exit_code).name
            except ValueError:
                name = str(-exit_code)
            message = f"signal: {name}"
        else:
            message = f"exit status {exit_code}"
        super().__init__(message)

    @property
    def signal(self) -> int | None:
        return -self.exit_code if self.exit_code < 0 else None


class ContainerExitError(RunnerError):
    """The engine reported an error while waiting on the container."""


class EngineError(RunnerError):
    """The container engine API answered with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"engine error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class EngineConfigError(RunnerError):
    """Ambient engine configuration cannot be used."""


class StreamDemuxError(RunnerError):
    """Malformed framing on the engine's combined log stream."""
