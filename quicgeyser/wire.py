"""Fixed-width little-endian binary encoding used for messages on the wire.

Integers are little-endian with fixed width, booleans are one byte,
sequences and byte strings carry a u64 length prefix, and optional values
carry a one-byte tag.
"""

from __future__ import annotations

import struct
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_I32 = struct.Struct("<i")
_I64 = struct.Struct("<q")


class WireError(ValueError):
    """Raised when a value cannot be encoded or a buffer cannot be decoded."""


class Encoder:
    """Accumulates encoded values into a byte buffer."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def _pack(self, packer: struct.Struct, value: int, name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise WireError(f"{name} expects an integer, got {value!r}")
        try:
            self._buffer += packer.pack(value)
        except struct.error as exc:
            raise WireError(f"{name} value out of range: {value!r}") from exc

    def write_u8(self, value: int) -> None:
        self._pack(_U8, value, "u8")

    def write_u32(self, value: int) -> None:
        self._pack(_U32, value, "u32")

    def write_u64(self, value: int) -> None:
        self._pack(_U64, value, "u64")

    def write_i32(self, value: int) -> None:
        self._pack(_I32, value, "i32")

    def write_i64(self, value: int) -> None:
        self._pack(_I64, value, "i64")

    def write_bool(self, value: bool) -> None:
        self._buffer.append(1 if value else 0)

    def write_raw(self, data: bytes) -> None:
        """Write bytes with no length prefix."""
        self._buffer += bytes(data)

    def write_bytes(self, data: bytes) -> None:
        """Write a length-prefixed byte string."""
        data = bytes(data)
        self.write_u64(len(data))
        self._buffer += data

    def write_str(self, text: str) -> None:
        self.write_bytes(text.encode("utf-8"))

    def write_option(self, value: Optional[T], write_item: Callable[[T], None]) -> None:
        if value is None:
            self.write_u8(0)
        else:
            self.write_u8(1)
            write_item(value)

    def write_seq(self, items: Iterable[T], write_item: Callable[[T], None]) -> None:
        items = list(items)
        self.write_u64(len(items))
        for item in items:
            write_item(item)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class Decoder:
    """Reads encoded values from a byte buffer, front to back."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._position = 0

    def _take(self, size: int) -> memoryview:
        if size < 0 or self.remaining() < size:
            raise WireError(
                f"unexpected end of data: wanted {size} bytes, {self.remaining()} left"
            )
        chunk = self._data[self._position:self._position + size]
        self._position += size
        return chunk

    def _unpack(self, packer: struct.Struct) -> int:
        return packer.unpack(self._take(packer.size))[0]

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_bool(self) -> bool:
        value = self.read_u8()
        if value not in (0, 1):
            raise WireError(f"invalid boolean byte {value}")
        return value == 1

    def read_raw(self, size: int) -> bytes:
        return bytes(self._take(size))

    def read_bytes(self) -> bytes:
        return self.read_raw(self.read_u64())

    def read_str(self) -> str:
        data = self.read_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise WireError("string is not valid UTF-8") from exc

    def read_option(self, read_item: Callable[[], T]) -> Optional[T]:
        tag = self.read_u8()
        if tag == 0:
            return None
        if tag == 1:
            return read_item()
        raise WireError(f"invalid option tag {tag}")

    def read_seq(self, read_item: Callable[[], T]) -> List[T]:
        count = self.read_u64()
        return [read_item() for _ in range(count)]

    def remaining(self) -> int:
        return len(self._data) - self._position