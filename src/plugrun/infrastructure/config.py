"""Configuration constants and .env parsing."""

from __future__ import annotations

import os
from pathlib import Path


def read_env_file(keys: list[str], env_file: Path | None = None) -> dict[str, str]:
    """Parse a .env file and return values for requested keys.

    Values are returned, never loaded into os.environ, so they do not
    leak into plugin processes that inherit the host environment.
    """
    path = env_file or Path.cwd() / ".env"
    try:
        content = path.read_text()
    except OSError:
        return {}

    wanted = set(keys)
    result: dict[str, str] = {}

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, sep, value = trimmed.partition("=")
        if not sep:
            continue
        key = key.strip()
        if key not in wanted:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        if value:
            result[key] = value

    return result


def _setting(name: str, default: str) -> str:
    return os.environ.get(name) or _env_config.get(name, default)


_env_config = read_env_file(
    [
        "DOCKER_HOST",
        "DOCKER_API_VERSION",
        "DOCKER_TLS_VERIFY",
        "DOCKER_CERT_PATH",
        "PLUGRUN_ENGINE_TIMEOUT",
        "PLUGRUN_LOG_DRAIN_TIMEOUT",
    ]
)

# Environment handed to plugins
ENV_UNIX_SOCKET_DIR = "PLUGIN_UNIX_SOCKET_DIR"
ENV_UNIX_SOCKET_GROUP = "PLUGIN_UNIX_SOCKET_GROUP"

# Container side of the rendezvous bind mount
CONTAINER_SOCKET_DIR = "/tmp"
SOCKET_ADDR_PREFIX = f"{ENV_UNIX_SOCKET_DIR}:"
SOCKET_DIR_PREFIX = "plugin-dir"

DOCKER_HOST: str = _setting("DOCKER_HOST", "unix:///var/run/docker.sock")
DOCKER_API_VERSION: str = _setting("DOCKER_API_VERSION", "")  # empty = negotiate
DEFAULT_API_VERSION = "1.43"
FALLBACK_API_VERSION = "1.24"

# Any non-empty value turns on TLS with server verification against ca.pem
DOCKER_TLS_VERIFY: bool = bool(_setting("DOCKER_TLS_VERIFY", ""))
DOCKER_CERT_PATH: str = _setting("DOCKER_CERT_PATH", "")  # ca.pem, cert.pem, key.pem

ENGINE_TIMEOUT: float = float(_setting("PLUGRUN_ENGINE_TIMEOUT", "60"))  # seconds
LOG_DRAIN_TIMEOUT: float = float(_setting("PLUGRUN_LOG_DRAIN_TIMEOUT", "5"))
