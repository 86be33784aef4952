"""Optional LZ4 compression of payload bytes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import lz4.block

from .wire import Decoder, Encoder, WireError

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class CompressionKind(IntEnum):
    NONE = 0
    LZ4_FAST = 1
    LZ4 = 2


@dataclass(frozen=True, order=True)
class CompressionType:
    """How a payload is compressed; the parameter is the speed or level."""

    kind: CompressionKind = CompressionKind.LZ4_FAST
    parameter: int = 8

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", CompressionKind(self.kind))
        if self.kind == CompressionKind.NONE:
            object.__setattr__(self, "parameter", 0)
        if not _I32_MIN <= self.parameter <= _I32_MAX:
            raise ValueError(f"compression parameter out of range: {self.parameter}")

    @classmethod
    def none(cls) -> "CompressionType":
        return cls(CompressionKind.NONE, 0)

    @classmethod
    def lz4_fast(cls, speed: int) -> "CompressionType":
        return cls(CompressionKind.LZ4_FAST, speed)

    @classmethod
    def lz4(cls, level: int) -> "CompressionType":
        return cls(CompressionKind.LZ4, level)

    @classmethod
    def default(cls) -> "CompressionType":
        return cls.lz4_fast(8)

    def compress(self, data: bytes) -> bytes:
        """Compress data; the result carries the original size in front."""
        data = bytes(data)
        if not data:
            return b""
        if self.kind == CompressionKind.NONE:
            return data
        if self.kind == CompressionKind.LZ4_FAST:
            return lz4.block.compress(
                data, mode="fast", acceleration=self.parameter, store_size=True
            )
        return lz4.block.compress(
            data, mode="high_compression", compression=self.parameter, store_size=True
        )

    def decompress(self, data: bytes) -> bytes:
        data = bytes(data)
        if self.kind == CompressionKind.NONE or not data:
            return data
        try:
            return lz4.block.decompress(data)
        except (lz4.block.LZ4BlockError, ValueError) as exc:
            raise ValueError(f"cannot decompress data: {exc}") from exc

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u32(int(self.kind))
        if self.kind != CompressionKind.NONE:
            encoder.write_i32(self.parameter)

    @classmethod
    def decode(cls, decoder: Decoder) -> "CompressionType":
        tag = decoder.read_u32()
        try:
            kind = CompressionKind(tag)
        except ValueError as exc:
            raise WireError(f"invalid compression type tag {tag}") from exc
        if kind == CompressionKind.NONE:
            return cls.none()
        return cls(kind, decoder.read_i32())