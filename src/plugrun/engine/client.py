"""Async client for the container engine's HTTP API."""

from __future__ import annotations

from typing import Any

import httpx

from plugrun.engine.runtime import ContainerRuntime, DockerRuntime
from plugrun.engine.types import WaitStatus
from plugrun.infrastructure.config import DEFAULT_API_VERSION, ENGINE_TIMEOUT, FALLBACK_API_VERSION
from plugrun.infrastructure.logger import logger
from plugrun.runner.errors import EngineError

# Waits and followed log streams last as long as the container does
_UNBOUNDED_READ = httpx.Timeout(ENGINE_TIMEOUT, read=None)


def _version_tuple(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split(".") if part.isdigit())


def negotiate_version(server_version: str | None) -> str:
    """Pick the lower of the server's API version and ours."""
    if not server_version:
        return FALLBACK_API_VERSION
    if _version_tuple(server_version) < _version_tuple(DEFAULT_API_VERSION):
        return server_version
    return DEFAULT_API_VERSION


class EngineClient:
    """Thin wrapper over the Docker Engine API.

    The API version is negotiated lazily on the first request unless the
    runtime pins one.
    """

    def __init__(
        self,
        runtime: ContainerRuntime | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._runtime = runtime or DockerRuntime()
        if transport is None and self._runtime.socket:
            transport = httpx.AsyncHTTPTransport(uds=self._runtime.socket)
        elif transport is None and self._runtime.tls:
            transport = httpx.AsyncHTTPTransport(verify=self._runtime.ssl_context())
        self._http = httpx.AsyncClient(
            base_url=self._runtime.base_url,
            transport=transport,
            timeout=ENGINE_TIMEOUT,
        )
        self._version: str | None = self._runtime.api_version or None

    @property
    def api_version(self) -> str | None:
        return self._version

    async def _ensure_version(self) -> str:
        if self._version is None:
            response = await self._http.get("/_ping")
            await _raise_for_status(response)
            self._version = negotiate_version(response.headers.get("API-Version"))
            logger.debug("Negotiated engine API version", version=self._version)
        return self._version

    async def _url(self, path: str) -> str:
        version = await self._ensure_version()
        return f"/v{version}{path}"

    async def create_container(self, body: dict[str, Any], name: str | None = None) -> str:
        params = {"name": name} if name else None
        response = await self._http.post(await self._url("/containers/create"), params=params, json=body)
        await _raise_for_status(response)
        data = response.json()
        for warning in data.get("Warnings") or []:
            logger.warning("Engine warning on container create", warning=warning)
        return data["Id"]

    async def start_container(self, container_id: str) -> None:
        response = await self._http.post(await self._url(f"/containers/{container_id}/start"))
        if response.status_code == 304:  # already started
            return
        await _raise_for_status(response)

    async def container_logs(self, container_id: str, follow: bool = True) -> httpx.Response:
        """Open the combined stdout/stderr log stream. Caller must aclose() it."""
        request = self._http.build_request(
            "GET",
            await self._url(f"/containers/{container_id}/logs"),
            params={"stdout": "1", "stderr": "1", "follow": "1" if follow else "0"},
            timeout=_UNBOUNDED_READ,
        )
        response = await self._http.send(request, stream=True)
        if response.is_error:
            try:
                await response.aread()
            finally:
                await response.aclose()
            await _raise_for_status(response)
        return response

    async def wait_container(self, container_id: str, condition: str = "not-running") -> WaitStatus:
        response = await self._http.post(
            await self._url(f"/containers/{container_id}/wait"),
            params={"condition": condition},
            timeout=_UNBOUNDED_READ,
        )
        await _raise_for_status(response)
        return WaitStatus.model_validate(response.json())

    async def stop_container(self, container_id: str, timeout: int | None = None) -> None:
        params = {"t": str(timeout)} if timeout is not None else None
        response = await self._http.post(
            await self._url(f"/containers/{container_id}/stop"),
            params=params,
            timeout=_UNBOUNDED_READ,
        )
        if response.status_code == 304:  # already stopped
            return
        await _raise_for_status(response)

    async def remove_container(self, container_id: str, force: bool = True) -> None:
        response = await self._http.delete(
            await self._url(f"/containers/{container_id}"),
            params={"force": "1" if force else "0"},
        )
        if response.status_code == 404:
            return
        await _raise_for_status(response)

    async def close(self) -> None:
        await self._http.aclose()


async def _raise_for_status(response: httpx.Response) -> None:
    if not response.is_error:
        return
    await response.aread()
    try:
        data = response.json()
    except ValueError:
        data = None
    message = data.get("message") if isinstance(data, dict) else None
    message = message or response.text
    raise EngineError(response.status_code, message.strip())
