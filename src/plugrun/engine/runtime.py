"""Container runtime abstraction — Protocol + Docker implementation."""

from __future__ import annotations

import ssl
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

from plugrun.infrastructure.config import DOCKER_API_VERSION, DOCKER_CERT_PATH, DOCKER_HOST, DOCKER_TLS_VERIFY
from plugrun.runner.errors import EngineConfigError


class ContainerRuntime(Protocol):
    """Where and how to reach a container engine's API."""

    @property
    def base_url(self) -> str:
        """HTTP base URL for API requests."""
        ...

    @property
    def socket(self) -> str | None:
        """Path to the engine's Unix socket, if it listens on one."""
        ...

    @property
    def api_version(self) -> str:
        """Pinned API version, or empty to negotiate."""
        ...

    @property
    def tls(self) -> bool:
        """Whether API requests go over TLS."""
        ...

    def ssl_context(self) -> ssl.SSLContext:
        """TLS settings for the engine connection."""
        ...


class DockerRuntime:
    """Docker engine located through DOCKER_HOST.

    TLS follows the Docker CLI: it is on for TCP hosts when DOCKER_TLS_VERIFY
    or DOCKER_CERT_PATH is set, and certificates are read from the cert path
    (``~/.docker`` by default).
    """

    def __init__(
        self,
        host: str | None = None,
        api_version: str | None = None,
        tls_verify: bool | None = None,
        cert_path: str | Path | None = None,
    ) -> None:
        self._host = host or DOCKER_HOST
        self._api_version = DOCKER_API_VERSION if api_version is None else api_version
        self._tls_verify = DOCKER_TLS_VERIFY if tls_verify is None else tls_verify
        cert_path = cert_path or DOCKER_CERT_PATH
        self._cert_path = Path(cert_path) if cert_path else Path.home() / ".docker"
        self._tls = False

        parts = urlsplit(self._host)
        if parts.scheme == "unix":
            if not parts.path:
                raise EngineConfigError(f"DOCKER_HOST has no socket path: {self._host}")
            self._socket: str | None = parts.path
            self._base_url = "http://docker"
        elif parts.scheme in ("tcp", "http", "https"):
            if not parts.netloc:
                raise EngineConfigError(f"DOCKER_HOST has no address: {self._host}")
            self._socket = None
            self._tls = parts.scheme == "https" or self._tls_verify or bool(cert_path)
            self._base_url = f"{'https' if self._tls else 'http'}://{parts.netloc}"
        else:
            raise EngineConfigError(f"unsupported DOCKER_HOST scheme: {self._host}")

    @property
    def host(self) -> str:
        return self._host

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def socket(self) -> str | None:
        return self._socket

    @property
    def api_version(self) -> str:
        return self._api_version

    @property
    def tls(self) -> bool:
        return self._tls

    @property
    def cert_path(self) -> Path:
        return self._cert_path

    def ssl_context(self) -> ssl.SSLContext:
        ca_file = self._cert_path / "ca.pem"
        cert_file = self._cert_path / "cert.pem"
        key_file = self._cert_path / "key.pem"
        try:
            if self._tls_verify:
                context = ssl.create_default_context(cafile=str(ca_file))
            else:
                context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            if cert_file.exists() and key_file.exists():
                context.load_cert_chain(str(cert_file), str(key_file))
        except (OSError, ssl.SSLError) as err:
            raise EngineConfigError(f"could not load TLS certificates from {self._cert_path}: {err}") from err
        return context
