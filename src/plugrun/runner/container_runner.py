"""ContainerRunner — runs a plugin inside a container via the engine API."""

from __future__ import annotations

import asyncio
import contextlib
import posixpath
import shutil
from pathlib import Path

import httpx

from plugrun.engine.client import EngineClient
from plugrun.engine.pipe import open_pipe
from plugrun.engine.stdcopy import copy_raw, demux
from plugrun.engine.types import (
    CONSISTENCY_DEFAULT,
    MOUNT_TYPE_BIND,
    PROPAGATION_RSHARED,
    BindOptions,
    Mount,
    PluginContainerConfig,
)
from plugrun.infrastructure.config import (
    CONTAINER_SOCKET_DIR,
    ENV_UNIX_SOCKET_DIR,
    ENV_UNIX_SOCKET_GROUP,
    LOG_DRAIN_TIMEOUT,
    SOCKET_ADDR_PREFIX,
)
from plugrun.infrastructure.logger import logger
from plugrun.runner.addr import resolve_unix_addr
from plugrun.runner.errors import (
    AddressError,
    ContainerExitError,
    IncompatiblePluginError,
    PluginExitError,
    RunnerStateError,
)
from plugrun.runner.types import Command, RunnerState, UnixAddr


def rendezvous_mount(host_socket_dir: Path) -> Mount:
    """Bind mount sharing the host socket directory with the container."""
    return Mount(
        type=MOUNT_TYPE_BIND,
        source=str(host_socket_dir),
        target=CONTAINER_SOCKET_DIR,
        read_only=False,
        consistency=CONSISTENCY_DEFAULT,
        bind_options=BindOptions(propagation=PROPAGATION_RSHARED, non_recursive=True),
    )


def plugin_env(cmd: Command, unix_socket_group: int) -> dict[str, str]:
    """Command environment plus the variables naming the container socket dir."""
    env = dict(cmd.env or {})
    env[ENV_UNIX_SOCKET_DIR] = CONTAINER_SOCKET_DIR
    if unix_socket_group:
        env[ENV_UNIX_SOCKET_GROUP] = str(unix_socket_group)
    return env


class ContainerRunner:
    """Runs a plugin as a container and exposes its log streams.

    The runner exclusively owns ``host_socket_dir`` and its engine client;
    both are released by kill().
    """

    def __init__(
        self,
        cmd: Command,
        config: PluginContainerConfig,
        host_socket_dir: str | Path,
        client: EngineClient | None = None,
    ) -> None:
        host_dir = Path(host_socket_dir)
        if not host_dir.is_absolute():
            raise ValueError(f"host socket dir must be absolute: {host_socket_dir}")
        host_dir.mkdir(parents=True, exist_ok=True)

        # TODO: honour cmd.path, cmd.args and cmd.cwd as entrypoint, args and working dir overrides
        self._config = config.model_copy(deep=True)
        self._config.host_config.mounts.append(rendezvous_mount(host_dir))
        env = plugin_env(cmd, config.unix_socket_group)
        self._config.container_config.env = [
            *self._config.container_config.env,
            *(f"{key}={value}" for key, value in env.items()),
        ]

        self._host_socket_dir = host_dir
        self._client = client or EngineClient()
        self._image = self._config.container_config.image
        self._id = ""
        self._state = RunnerState.NEW
        self._waited = False
        self._killed = False
        self._lock = asyncio.Lock()
        self._stdout: asyncio.StreamReader | None = None
        self._stderr: asyncio.StreamReader | None = None
        self._log_task: asyncio.Task[None] | None = None
        self._log_writers: tuple[asyncio.StreamWriter, ...] = ()

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def host_socket_dir(self) -> Path:
        return self._host_socket_dir

    @property
    def config(self) -> PluginContainerConfig:
        return self._config

    async def start(self) -> None:
        async with self._lock:
            if self._state is not RunnerState.NEW or self._killed:
                raise RunnerStateError(f"cannot start runner in state {self._state.value}")

            logger.debug("Starting plugin container", image=self._image)
            try:
                self._stdout, stdout_writer = await open_pipe()
                self._stderr, stderr_writer = await open_pipe()
                self._log_writers = (stdout_writer, stderr_writer)
                self._id = await self._client.create_container(self._config.create_body())
                await self._client.start_container(self._id)
                # The log stream combines stdout and stderr
                logs = await self._client.container_logs(self._id, follow=True)
            except Exception:
                self._state = RunnerState.DEAD
                await self._abandon()
                raise

            self._log_task = asyncio.create_task(self._stream_logs(logs, stdout_writer, stderr_writer))
            self._state = RunnerState.RUNNING
            logger.debug("Plugin container started", image=self._image, id=self._id)

    async def _stream_logs(
        self,
        logs: httpx.Response,
        stdout: asyncio.StreamWriter,
        stderr: asyncio.StreamWriter,
    ) -> None:
        try:
            if self._config.container_config.tty:
                await copy_raw(logs.aiter_raw(), stdout)
            else:
                await demux(logs.aiter_raw(), stdout, stderr)
        except Exception as err:
            logger.error("Error streaming logs from container", id=self._id, error=str(err))
        finally:
            logger.debug("Container log streaming shutting down", id=self._id)
            self._close_log_writers()
            try:
                await logs.aclose()
            except Exception as err:
                logger.warning("Failed to close container log stream", id=self._id, error=str(err))

    def _close_log_writers(self, abort: bool = False) -> None:
        for writer in self._log_writers:
            if abort:
                writer.transport.abort()
            else:
                writer.close()

    async def wait(self) -> None:
        if not self._id or self._state is RunnerState.DEAD or self._waited:
            raise RunnerStateError("wait requires a started runner and may only be called once")
        self._waited = True

        status = await self._client.wait_container(self._id, condition="not-running")
        self._state = RunnerState.EXITED
        logger.info("Received container status", id=self._id, status_code=status.status_code)
        if status.error is not None and status.error.message:
            raise ContainerExitError(status.error.message)
        if status.status_code != 0:
            raise PluginExitError(status.status_code)

    async def kill(self) -> None:
        # Shares the lock with start(), so a kill issued mid-start acts on the started container
        async with self._lock:
            if self._killed or self._state is RunnerState.DEAD:
                return
            self._killed = True

            if not self._id:
                self._state = RunnerState.DEAD
                await self._release()
                return

            if self._state is RunnerState.RUNNING:
                self._state = RunnerState.STOPPING
            try:
                await self._client.stop_container(self._id)
            finally:
                await self._drain_logs()
                await self._release()

    async def _drain_logs(self) -> None:
        if self._log_task is None or self._log_task.done():
            return
        await asyncio.wait({self._log_task}, timeout=LOG_DRAIN_TIMEOUT)
        if not self._log_task.done():
            logger.warning("Container log stream still open after stop, cancelling", id=self._id)
            self._log_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._log_task
            # Unread output would otherwise hold the pipes open
            self._close_log_writers(abort=True)

    async def _abandon(self) -> None:
        """Undo a partially completed start."""
        self._close_log_writers()
        if self._id:
            try:
                await self._client.remove_container(self._id, force=True)
            except Exception as err:
                logger.warning("Failed to remove container after failed start", id=self._id, error=str(err))
        await self._release()

    async def _release(self) -> None:
        try:
            await self._client.close()
        except Exception as err:
            logger.warning("Failed to close engine client", error=str(err))
        try:
            shutil.rmtree(self._host_socket_dir)
        except FileNotFoundError:
            pass
        except OSError as err:
            logger.warning("Failed to remove socket dir", path=str(self._host_socket_dir), error=str(err))

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._stdout is None:
            raise RunnerStateError("stdout is not available before start")
        return self._stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        if self._stderr is None:
            raise RunnerStateError("stderr is not available before start")
        return self._stderr

    def resolve_addr(self, network: str, address: str) -> UnixAddr:
        if network != "unix":
            raise AddressError(f"unsupported address: {network}, {address}")
        if not address.startswith(SOCKET_ADDR_PREFIX):
            raise IncompatiblePluginError(address)

        relative = address[len(SOCKET_ADDR_PREFIX) :]
        return resolve_unix_addr(posixpath.normpath(f"{self._host_socket_dir}/{relative}"))

    @property
    def name(self) -> str:
        return self._image

    @property
    def id(self) -> str:
        return self._id
