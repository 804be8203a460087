"""Address parsing for the transports plugins advertise."""

from __future__ import annotations

import ipaddress
import socket

from plugrun.runner.errors import AddressError
from plugrun.runner.types import TCPAddr, UnixAddr


def _split_host_port(address: str) -> tuple[str, str]:
    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            raise AddressError(f"missing ']' in address: {address}")
        host, rest = address[1:end], address[end + 1 :]
        if not rest.startswith(":"):
            raise AddressError(f"missing port in address: {address}")
        return host, rest[1:]

    host, sep, port = address.rpartition(":")
    if not sep:
        raise AddressError(f"missing port in address: {address}")
    if ":" in host:
        raise AddressError(f"too many colons in address: {address}")
    return host, port


def _lookup_host(host: str, port: int) -> str:
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as err:
        raise AddressError(f"lookup {host}: {err.strerror}") from err

    # Prefer IPv4, like most dialers do for plain "tcp"
    for family, _, _, _, sockaddr in infos:
        if family == socket.AF_INET:
            return str(sockaddr[0])
    return str(infos[0][4][0])


def resolve_tcp_addr(address: str) -> TCPAddr:
    """Parse ``host:port`` into a TCPAddr, resolving host names."""
    host, port_str = _split_host_port(address)
    # An empty port means "any port", as in "127.0.0.1:"
    port_str = port_str or "0"
    if not port_str.isdigit():
        raise AddressError(f"invalid port in address: {address}")
    port = int(port_str)
    if port > 65535:
        raise AddressError(f"port out of range in address: {address}")

    if host:
        try:
            host = str(ipaddress.ip_address(host))
        except ValueError:
            host = _lookup_host(host, port)

    return TCPAddr(host=host, port=port)


def resolve_unix_addr(path: str) -> UnixAddr:
    if not path:
        raise AddressError("empty unix socket path")
    return UnixAddr(path=path)
