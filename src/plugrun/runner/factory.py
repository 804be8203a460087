"""Runner factory.

Maps a plugin launch request to its concrete runner. Callers should depend
on the `Runner` port.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

from plugrun.engine.client import EngineClient
from plugrun.engine.types import PluginContainerConfig
from plugrun.infrastructure.config import SOCKET_DIR_PREFIX
from plugrun.runner.cmd_runner import CmdRunner
from plugrun.runner.container_runner import ContainerRunner
from plugrun.runner.ports import Runner
from plugrun.runner.types import Command


def create_runner(
    cmd: Command,
    *,
    container: PluginContainerConfig | None = None,
    host_socket_dir: str | Path | None = None,
    client: EngineClient | None = None,
) -> Runner:
    if container is None:
        if host_socket_dir is not None or client is not None:
            raise TypeError("host_socket_dir and client only apply to containerized plugins")
        return CmdRunner(cmd)

    if host_socket_dir is not None:
        return ContainerRunner(cmd, container, host_socket_dir, client=client)

    socket_dir = tempfile.mkdtemp(prefix=SOCKET_DIR_PREFIX)
    try:
        return ContainerRunner(cmd, container, socket_dir, client=client)
    except Exception:
        shutil.rmtree(socket_dir, ignore_errors=True)
        raise
