"""Messages exchanged between server and clients, and their stream framing.

On a stream every message is an 8-byte little-endian length followed by
the encoded message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, List, Optional, Tuple

from .account import Account
from .block import Block
from .block_meta import BlockMeta, SlotMeta
from .filters import Filter
from .transaction import Transaction
from .wire import Decoder, Encoder, WireError

_LENGTH_PREFIX = 8


class Message:
    """Base of every message kind."""

    TAG: ClassVar[int]

    def _encode_body(self, encoder: Encoder) -> None:
        raise NotImplementedError


@dataclass
class AccountMsg(Message):
    account: Account
    TAG: ClassVar[int] = 0

    def _encode_body(self, encoder: Encoder) -> None:
        self.account.encode(encoder)


@dataclass
class SlotMsg(Message):
    meta: SlotMeta
    TAG: ClassVar[int] = 1

    def _encode_body(self, encoder: Encoder) -> None:
        self.meta.encode(encoder)


@dataclass
class BlockMetaMsg(Message):
    meta: BlockMeta
    TAG: ClassVar[int] = 2

    def _encode_body(self, encoder: Encoder) -> None:
        self.meta.encode(encoder)


@dataclass
class TransactionMsg(Message):
    transaction: Transaction
    TAG: ClassVar[int] = 3

    def _encode_body(self, encoder: Encoder) -> None:
        self.transaction.encode(encoder)


@dataclass
class BlockMsg(Message):
    block: Block
    TAG: ClassVar[int] = 4

    def _encode_body(self, encoder: Encoder) -> None:
        self.block.encode(encoder)


@dataclass
class FiltersMsg(Message):
    """Sent from a client to the server to subscribe."""

    filters: List[Filter] = field(default_factory=list)
    TAG: ClassVar[int] = 5

    def _encode_body(self, encoder: Encoder) -> None:
        encoder.write_seq(self.filters, lambda item: item.encode(encoder))


@dataclass
class Ping(Message):
    TAG: ClassVar[int] = 6

    def _encode_body(self, encoder: Encoder) -> None:
        pass


_DECODERS: Dict[int, Callable[[Decoder], Message]] = {
    AccountMsg.TAG: lambda d: AccountMsg(Account.decode(d)),
    SlotMsg.TAG: lambda d: SlotMsg(SlotMeta.decode(d)),
    BlockMetaMsg.TAG: lambda d: BlockMetaMsg(BlockMeta.decode(d)),
    TransactionMsg.TAG: lambda d: TransactionMsg(Transaction.decode(d)),
    BlockMsg.TAG: lambda d: BlockMsg(Block.decode(d)),
    FiltersMsg.TAG: lambda d: FiltersMsg(d.read_seq(lambda: Filter.decode(d))),
    Ping.TAG: lambda d: Ping(),
}


def encode_message(message: Message) -> bytes:
    """Encode a message without the length prefix."""
    if not isinstance(message, Message) or type(message) is Message:
        raise TypeError(f"not a message: {message!r}")
    encoder = Encoder()
    encoder.write_u32(message.TAG)
    message._encode_body(encoder)
    return encoder.getvalue()


def decode_message(data: bytes) -> Message:
    """Decode a message encoded by :func:`encode_message`."""
    decoder = Decoder(data)
    tag = decoder.read_u32()
    read = _DECODERS.get(tag)
    if read is None:
        raise WireError(f"invalid message tag {tag}")
    return read(decoder)


def to_binary_stream(message: Message) -> bytes:
    """Encode a message with its 8-byte little-endian length in front."""
    binary = encode_message(message)
    return len(binary).to_bytes(_LENGTH_PREFIX, "little") + binary


def from_binary_stream_binary(stream: bytes) -> Optional[Tuple[bytes, int]]:
    """Return the first framed payload and the bytes it took, or None if incomplete."""
    if len(stream) < _LENGTH_PREFIX:
        return None
    size = int.from_bytes(bytes(stream[:_LENGTH_PREFIX]), "little")
    end = _LENGTH_PREFIX + size
    if len(stream) < end:
        return None
    return bytes(stream[_LENGTH_PREFIX:end]), end


def from_binary_stream(stream: bytes) -> Optional[Tuple[Message, int]]:
    """Return the first framed message and the bytes it took, or None if incomplete."""
    framed = from_binary_stream_binary(stream)
    if framed is None:
        return None
    payload, consumed = framed
    return decode_message(payload), consumed