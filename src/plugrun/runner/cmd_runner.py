"""CmdRunner — runs a plugin as a local child process."""

from __future__ import annotations

import asyncio

from plugrun.infrastructure.logger import logger
from plugrun.runner.addr import resolve_tcp_addr, resolve_unix_addr
from plugrun.runner.errors import AddressError, PluginExitError, RunnerStateError
from plugrun.runner.types import Addr, Command, RunnerState


class CmdRunner:
    """Passes through to an asyncio subprocess.

    Path and pid are snapshotted, since the process record can go away
    once the child has been reaped.
    """

    def __init__(self, cmd: Command) -> None:
        self._cmd = cmd
        self._path = cmd.path
        self._pid: int | None = None
        self._proc: asyncio.subprocess.Process | None = None
        self._state = RunnerState.NEW
        self._waited = False

    @property
    def state(self) -> RunnerState:
        return self._state

    async def start(self) -> None:
        if self._state is not RunnerState.NEW:
            raise RunnerStateError(f"cannot start runner in state {self._state.value}")

        logger.debug("Starting plugin", path=self._path, args=self._cmd.args)
        try:
            self._proc = await asyncio.create_subprocess_exec(
                self._path, *self._cmd.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._cmd.env,
                cwd=self._cmd.cwd,
            )
        except OSError:
            self._state = RunnerState.DEAD
            raise

        self._pid = self._proc.pid
        self._state = RunnerState.RUNNING
        logger.debug("Plugin started", path=self._path, pid=self._pid)

    async def wait(self) -> None:
        if self._proc is None or self._waited:
            raise RunnerStateError("wait requires a started runner and may only be called once")
        self._waited = True

        returncode = await self._proc.wait()
        self._state = RunnerState.EXITED
        if returncode != 0:
            raise PluginExitError(returncode)

    async def kill(self) -> None:
        if self._proc is None:
            return
        if self._state is RunnerState.RUNNING:
            self._state = RunnerState.STOPPING
        if self._proc.returncode is not None:
            return
        try:
            self._proc.kill()
        except ProcessLookupError:
            pass

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._proc is None or self._proc.stdout is None:
            raise RunnerStateError("stdout is not available before start")
        return self._proc.stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        if self._proc is None or self._proc.stderr is None:
            raise RunnerStateError("stderr is not available before start")
        return self._proc.stderr

    def resolve_addr(self, network: str, address: str) -> Addr:
        if network == "tcp":
            return resolve_tcp_addr(address)
        if network == "unix":
            return resolve_unix_addr(address)
        raise AddressError(f"unknown address type: {network} {address}")

    @property
    def name(self) -> str:
        return self._path

    @property
    def id(self) -> str:
        return str(self._pid) if self._pid is not None else ""
