"""Basic identifiers: base58 text, public keys, signatures, hashes and commitments."""

from __future__ import annotations

import itertools
import os
from dataclasses import dataclass
from enum import IntEnum

from .wire import Decoder, Encoder, WireError

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: index for index, char in enumerate(_ALPHABET)}


def b58encode(data: bytes) -> str:
    """Encode bytes as base58 text (Bitcoin alphabet)."""
    data = bytes(data)
    stripped = data.lstrip(b"\0")
    zeros = len(data) - len(stripped)
    number = int.from_bytes(stripped, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    return "1" * zeros + "".join(reversed(digits))


def b58decode(text: str) -> bytes:
    """Decode base58 text (Bitcoin alphabet) into bytes."""
    stripped = text.lstrip("1")
    zeros = len(text) - len(stripped)
    number = 0
    for char in stripped:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\0" * zeros + body


def _counted(cls, counter):
    number = next(counter)
    return cls(number.to_bytes(8, "big") + bytes(cls.LENGTH - 8))


def _parse(cls, text: str):
    data = b58decode(text)
    if len(data) != cls.LENGTH:
        raise ValueError(f"invalid {cls.__name__} string: {text!r}")
    return cls(data)


class _FixedBytes:
    """Shared behaviour of fixed-length binary identifiers."""

    LENGTH = 0

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) != self.LENGTH:
            raise ValueError(
                f"{type(self).__name__} needs {self.LENGTH} bytes, got {len(data)}"
            )
        object.__setattr__(self, "data", data)

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return b58encode(self.data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


@dataclass(frozen=True, order=True, repr=False)
class Pubkey(_FixedBytes):
    """A 32-byte account address."""

    data: bytes
    LENGTH = 32
    _COUNTER = itertools.count(1)

    @classmethod
    def new_unique(cls) -> "Pubkey":
        """Return a key that differs from every other one made this way."""
        return _counted(cls, cls._COUNTER)

    @classmethod
    def from_string(cls, text: str) -> "Pubkey":
        return _parse(cls, text)

    def encode(self, encoder: Encoder) -> None:
        encoder.write_raw(self.data)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Pubkey":
        return cls(decoder.read_raw(cls.LENGTH))


@dataclass(frozen=True, order=True, repr=False)
class Signature(_FixedBytes):
    """A 64-byte transaction signature."""

    data: bytes
    LENGTH = 64

    @classmethod
    def new_unique(cls) -> "Signature":
        return cls(os.urandom(cls.LENGTH))

    @classmethod
    def from_string(cls, text: str) -> "Signature":
        return _parse(cls, text)

    def encode(self, encoder: Encoder) -> None:
        encoder.write_raw(self.data)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Signature":
        return cls(decoder.read_raw(cls.LENGTH))


@dataclass(frozen=True, order=True, repr=False)
class Hash(_FixedBytes):
    """A 32-byte hash."""

    data: bytes
    LENGTH = 32
    _COUNTER = itertools.count(1)

    @classmethod
    def new_unique(cls) -> "Hash":
        """Return a hash that differs from every other one made this way."""
        return _counted(cls, cls._COUNTER)

    @classmethod
    def from_string(cls, text: str) -> "Hash":
        return _parse(cls, text)

    def encode(self, encoder: Encoder) -> None:
        encoder.write_raw(self.data)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Hash":
        return cls(decoder.read_raw(cls.LENGTH))


class CommitmentLevel(IntEnum):
    PROCESSED = 0
    CONFIRMED = 1
    FINALIZED = 2


@dataclass(frozen=True)
class CommitmentConfig:
    """The commitment a slot or block has reached."""

    commitment: CommitmentLevel = CommitmentLevel.FINALIZED

    @classmethod
    def processed(cls) -> "CommitmentConfig":
        return cls(CommitmentLevel.PROCESSED)

    @classmethod
    def confirmed(cls) -> "CommitmentConfig":
        return cls(CommitmentLevel.CONFIRMED)

    @classmethod
    def finalized(cls) -> "CommitmentConfig":
        return cls(CommitmentLevel.FINALIZED)

    def is_finalized(self) -> bool:
        return self.commitment == CommitmentLevel.FINALIZED

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u32(int(self.commitment))

    @classmethod
    def decode(cls, decoder: Decoder) -> "CommitmentConfig":
        tag = decoder.read_u32()
        try:
            return cls(CommitmentLevel(tag))
        except ValueError as exc:
            raise WireError(f"invalid commitment level {tag}") from exc


@dataclass(frozen=True, order=True)
class SlotIdentifier:
    slot: int

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u64(self.slot)

    @classmethod
    def decode(cls, decoder: Decoder) -> "SlotIdentifier":
        return cls(decoder.read_u64())