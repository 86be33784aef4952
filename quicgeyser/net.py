"""Parsing of host names and socket addresses."""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_host(host: str) -> IPAddress:
    """Parse a literal IP address."""
    try:
        return ipaddress.ip_address(host)
    except ValueError as exc:
        raise ValueError(f"invalid IP address syntax: {host!r}") from exc


def _parse_literal(text: str) -> Optional[Tuple[str, int]]:
    if text.startswith("["):
        host, sep, port_text = text[1:].partition("]:")
        parse_ip = ipaddress.IPv6Address
    else:
        host, sep, port_text = text.rpartition(":")
        parse_ip = ipaddress.IPv4Address
    port = _parse_port(port_text) if sep else None
    if port is None:
        return None
    try:
        return str(parse_ip(host)), port
    except ValueError:
        return None


def _parse_port(text: str) -> Optional[int]:
    if not (text.isascii() and text.isdigit()):
        return None
    port = int(text)
    return port if port <= 0xFFFF else None


def parse_host_port(host_port: str) -> Tuple[str, int]:
    """Resolve "host:port" to the first (address, port) it names."""
    literal = _parse_literal(host_port)
    if literal is not None:
        return literal
    host, sep, port_text = host_port.rpartition(":")
    if not sep:
        raise ValueError(f"Unable to resolve host {host_port}: invalid socket address")
    port = _parse_port(port_text)
    if port is None:
        raise ValueError(f"Unable to resolve host {host_port}: invalid port value")
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise ValueError(f"Unable to resolve host {host_port}: {exc}") from exc
    if not infos:
        raise ValueError(f"Unable to resolve host: {host_port}")
    sockaddr = infos[0][4]
    return sockaddr[0], sockaddr[1]