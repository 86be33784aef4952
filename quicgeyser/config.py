"""Server configuration, connection parameters, defaults and errors."""

from __future__ import annotations

import dataclasses
import ipaddress
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Tuple

from .compression import CompressionKind, CompressionType
from .wire import Decoder, Encoder

DEFAULT_MAX_STREAMS = 128
DEFAULT_MAX_RECIEVE_WINDOW_SIZE = 24 * 1024 * 1024
DEFAULT_CONNECTION_TIMEOUT = 10
DEFAULT_MAX_NB_CONNECTIONS = 10
DEFAULT_MAX_ACK_DELAY = 25
DEFAULT_ACK_EXPONENT = 3
ALPN_GEYSER_PROTOCOL_ID = b"geyser"
MAX_DATAGRAM_SIZE = 1350
MAX_PAYLOAD_BUFFER = 5 * MAX_DATAGRAM_SIZE
DEFAULT_ENABLE_PACING = True
DEFAULT_CC_ALGORITHM = "cubic"
DEFAULT_INCREMENTAL_PRIORITY = True
DEFAULT_ENABLE_GSO = True
DEFAULT_DISCOVER_PMTU = True
DEFAULT_PARALLEL_STREAMS = 32
DEFAULT_DISCONNECT_LAGGY_CLIENTS = True

_U64_LIMIT = 2**64
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class QuicGeyserError(Exception):
    """Base class of the package's errors."""


class ConfigLoadError(QuicGeyserError):
    """The configuration could not be read or is invalid."""


class ServerConfigError(QuicGeyserError):
    """The server could not be configured."""


class MessageChannelClosed(QuicGeyserError):
    """The message channel has been closed."""


class UnsupportedVersion(QuicGeyserError):
    """The requested version is not supported."""


def _check(key: str, value: Any, expected: type) -> Any:
    if expected is bool:
        valid = isinstance(value, bool)
    elif expected is int:
        valid = (
            isinstance(value, int)
            and not isinstance(value, bool)
            and 0 <= value < _U64_LIMIT
        )
    else:
        valid = isinstance(value, expected)
    if not valid:
        raise ConfigLoadError(f"invalid value for {key!r}: {value!r}")
    return value


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigLoadError(f"{what} must be an object, got {data!r}")
    return data


def _compression_from_json(value: Any) -> CompressionType:
    if value == "None":
        return CompressionType.none()
    if isinstance(value, Mapping) and len(value) == 1:
        ((name, argument),) = value.items()
        factory = {"Lz4Fast": CompressionType.lz4_fast, "Lz4": CompressionType.lz4}.get(name)
        if (
            factory is not None
            and isinstance(argument, int)
            and not isinstance(argument, bool)
            and _I32_MIN <= argument <= _I32_MAX
        ):
            return factory(argument)
    raise ConfigLoadError(f"invalid compression type: {value!r}")


def _compression_to_json(compression: CompressionType) -> Any:
    if compression.kind == CompressionKind.NONE:
        return "None"
    name = "Lz4Fast" if compression.kind == CompressionKind.LZ4_FAST else "Lz4"
    return {name: compression.parameter}


def _parse_address(value: Any) -> Tuple[str, int]:
    if not isinstance(value, str):
        raise ConfigLoadError(f"invalid socket address: {value!r}")
    if value.startswith("["):
        host, sep, port_text = value[1:].partition("]:")
        parse_ip = ipaddress.IPv6Address
    else:
        host, sep, port_text = value.rpartition(":")
        parse_ip = ipaddress.IPv4Address
    if not sep or not (port_text.isascii() and port_text.isdigit()):
        raise ConfigLoadError(f"invalid socket address: {value!r}")
    try:
        ip = parse_ip(host)
    except ValueError as exc:
        raise ConfigLoadError(f"invalid socket address: {value!r}") from exc
    port = int(port_text)
    if port > 0xFFFF:
        raise ConfigLoadError(f"invalid socket address: {value!r}")
    return str(ip), port


def _format_address(address: Tuple[str, int]) -> str:
    host, port = address
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass
class QuicParameters:
    max_number_of_streams_per_client: int = DEFAULT_MAX_STREAMS
    recieve_window_size: int = DEFAULT_MAX_RECIEVE_WINDOW_SIZE
    connection_timeout: int = DEFAULT_CONNECTION_TIMEOUT
    max_number_of_connections: int = DEFAULT_MAX_NB_CONNECTIONS
    max_ack_delay: int = DEFAULT_MAX_ACK_DELAY
    ack_exponent: int = DEFAULT_ACK_EXPONENT
    enable_pacing: bool = DEFAULT_ENABLE_PACING
    cc_algorithm: str = DEFAULT_CC_ALGORITHM
    incremental_priority: bool = DEFAULT_INCREMENTAL_PRIORITY
    enable_gso: bool = DEFAULT_ENABLE_GSO
    discover_pmtu: bool = DEFAULT_DISCOVER_PMTU
    disconnect_laggy_client: bool = DEFAULT_DISCONNECT_LAGGY_CLIENTS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuicParameters":
        """Build from a mapping; missing keys take defaults, unknown keys are ignored."""
        data = _require_mapping(data, "quic_parameters")
        defaults = cls()
        values = {}
        for item in dataclasses.fields(cls):
            if item.name in data:
                expected = type(getattr(defaults, item.name))
                values[item.name] = _check(item.name, data[item.name], expected)
        return cls(**values)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass
class CompressionParameters:
    compression_type: CompressionType = field(default_factory=CompressionType.default)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompressionParameters":
        data = _require_mapping(data, "compression_parameters")
        if "compression_type" not in data:
            raise ConfigLoadError("missing field 'compression_type'")
        return cls(_compression_from_json(data["compression_type"]))

    def to_dict(self) -> dict:
        return {"compression_type": _compression_to_json(self.compression_type)}


_PLUGIN_SIMPLE_FIELDS = {
    "log_level": str,
    "number_of_retries": int,
    "allow_accounts": bool,
    "allow_accounts_at_startup": bool,
    "enable_block_builder": bool,
    "build_blocks_with_accounts": bool,
}


@dataclass
class ConfigQuicPlugin:
    log_level: str = "info"
    address: Tuple[str, int] = ("::", 10800)
    quic_parameters: QuicParameters = field(default_factory=QuicParameters)
    compression_parameters: CompressionParameters = field(
        default_factory=CompressionParameters
    )
    number_of_retries: int = 100
    allow_accounts: bool = True
    allow_accounts_at_startup: bool = False
    enable_block_builder: bool = False
    build_blocks_with_accounts: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfigQuicPlugin":
        """Build from a mapping; unknown keys are rejected."""
        data = _require_mapping(data, "configuration")
        known = {item.name for item in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigLoadError(f"unknown field(s): {', '.join(unknown)}")
        values: dict = {
            key: _check(key, data[key], expected)
            for key, expected in _PLUGIN_SIMPLE_FIELDS.items()
            if key in data
        }
        if "address" in data:
            values["address"] = _parse_address(data["address"])
        if "quic_parameters" in data:
            values["quic_parameters"] = QuicParameters.from_dict(data["quic_parameters"])
        if "compression_parameters" in data:
            values["compression_parameters"] = CompressionParameters.from_dict(
                data["compression_parameters"]
            )
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> "ConfigQuicPlugin":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigLoadError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, path) -> "ConfigQuicPlugin":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"cannot read configuration file {path}: {exc}") from exc
        return cls.from_json(text)

    def to_dict(self) -> dict:
        return {
            "log_level": self.log_level,
            "address": _format_address(self.address),
            "quic_parameters": self.quic_parameters.to_dict(),
            "compression_parameters": self.compression_parameters.to_dict(),
            "number_of_retries": self.number_of_retries,
            "allow_accounts": self.allow_accounts,
            "allow_accounts_at_startup": self.allow_accounts_at_startup,
            "enable_block_builder": self.enable_block_builder,
            "build_blocks_with_accounts": self.build_blocks_with_accounts,
        }


@dataclass
class ConnectionParameters:
    max_number_of_streams: int = DEFAULT_MAX_STREAMS
    recieve_window_size: int = DEFAULT_MAX_RECIEVE_WINDOW_SIZE
    timeout_in_seconds: int = DEFAULT_CONNECTION_TIMEOUT
    max_ack_delay: int = DEFAULT_MAX_ACK_DELAY
    ack_exponent: int = DEFAULT_ACK_EXPONENT
    enable_gso: bool = DEFAULT_ENABLE_GSO
    enable_pacing: bool = DEFAULT_ENABLE_PACING

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u64(self.max_number_of_streams)
        encoder.write_u64(self.recieve_window_size)
        encoder.write_u64(self.timeout_in_seconds)
        encoder.write_u64(self.max_ack_delay)
        encoder.write_u64(self.ack_exponent)
        encoder.write_bool(self.enable_gso)
        encoder.write_bool(self.enable_pacing)

    @classmethod
    def decode(cls, decoder: Decoder) -> "ConnectionParameters":
        return cls(
            max_number_of_streams=decoder.read_u64(),
            recieve_window_size=decoder.read_u64(),
            timeout_in_seconds=decoder.read_u64(),
            max_ack_delay=decoder.read_u64(),
            ack_exponent=decoder.read_u64(),
            enable_gso=decoder.read_bool(),
            enable_pacing=decoder.read_bool(),
        )