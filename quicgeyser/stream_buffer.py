"""A bounded byte buffer for data waiting on a stream."""

from __future__ import annotations

from typing import Tuple


class StreamBuffer:
    """Holds up to ``buffer_len`` bytes, appended at the back and consumed from the front."""

    def __init__(self, buffer_len: int) -> None:
        if buffer_len <= 0:
            raise ValueError(f"buffer length must be positive, got {buffer_len}")
        self.buffer_len = buffer_len
        self._near_full = buffer_len * 95 // 100
        self._required_capacity = buffer_len * 75 // 100
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def append_bytes(self, data: bytes) -> bool:
        """Append data if it fits with room to spare; report whether it did."""
        data = bytes(data)
        if self.capacity() > len(data):
            self._data += data
            return True
        return False

    def as_slices(self) -> Tuple[bytes, bytes]:
        """Return the contents as two parts; storage is contiguous, so the second is empty."""
        return bytes(self._data), b""

    def consume(self, nb_bytes: int) -> bool:
        """Drop bytes from the front; refuse if fewer are held."""
        if nb_bytes < 0 or len(self._data) < nb_bytes:
            return False
        del self._data[:nb_bytes]
        return True

    def as_buffer(self) -> bytes:
        first, second = self.as_slices()
        return first + second

    def capacity(self) -> int:
        """Number of bytes that can still be stored."""
        return self.buffer_len - len(self._data)

    def is_near_full(self) -> bool:
        return len(self._data) > self._near_full

    def has_more_than_required_capacity(self) -> bool:
        return self.capacity() < self._required_capacity