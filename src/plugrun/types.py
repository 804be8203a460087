"""Barrel re-export of the public types."""

from plugrun.engine.types import (
    BindOptions,
    ContainerConfig,
    HostConfig,
    Mount,
    NetworkConfig,
    PluginContainerConfig,
    WaitStatus,
)
from plugrun.runner.errors import (
    AddressError,
    ContainerExitError,
    EngineConfigError,
    EngineError,
    IncompatiblePluginError,
    PluginExitError,
    RunnerError,
    RunnerStateError,
    StreamDemuxError,
)
from plugrun.runner.ports import Runner
from plugrun.runner.types import Addr, Command, RunnerState, TCPAddr, UnixAddr

__all__ = [
    "Addr",
    "AddressError",
    "BindOptions",
    "Command",
    "ContainerConfig",
    "ContainerExitError",
    "EngineConfigError",
    "EngineError",
    "HostConfig",
    "IncompatiblePluginError",
    "Mount",
    "NetworkConfig",
    "PluginContainerConfig",
    "PluginExitError",
    "Runner",
    "RunnerError",
    "RunnerState",
    "RunnerStateError",
    "StreamDemuxError",
    "TCPAddr",
    "UnixAddr",
    "WaitStatus",
]
