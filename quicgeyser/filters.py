"""Subscription filters deciding which channel messages a client receives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import FrozenSet, Optional, Tuple, Union

from .channel_message import (
    AccountMessage,
    BlockMessage,
    BlockMetaMessage,
    ChannelMessage,
    SlotMessage,
    TransactionMessage,
)
from .primitives import Pubkey, Signature
from .wire import Decoder, Encoder, WireError

VOTE_PROGRAM_ID = Pubkey.from_string("Vote111111111111111111111111111111111111111")
STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")


@dataclass(frozen=True)
class DatasizeFilter:
    """Matches account data of exactly this length."""

    data_length: int

    def _matches(self, data: bytes) -> bool:
        return len(data) == self.data_length


@dataclass(frozen=True)
class MemcmpFilter:
    """Matches account data holding ``data`` at ``offset``."""

    offset: int
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def _matches(self, data: bytes) -> bool:
        if self.offset > len(data):
            return False
        return data[self.offset:self.offset + len(self.data)] == self.data


AccountFilterType = Union[DatasizeFilter, MemcmpFilter]


@dataclass(frozen=True)
class AccountFilter:
    """Selects accounts by owner (with optional data filters) or by address."""

    owner: Optional[Pubkey] = None
    accounts: Optional[FrozenSet[Pubkey]] = None
    filters: Optional[Tuple[AccountFilterType, ...]] = None

    def __post_init__(self) -> None:
        if self.accounts is not None:
            object.__setattr__(self, "accounts", frozenset(self.accounts))
        if self.filters is not None:
            object.__setattr__(self, "filters", tuple(self.filters))

    def allows(self, message: ChannelMessage) -> bool:
        if not isinstance(message, AccountMessage):
            return False
        account_data = message.account_data
        account = account_data.account
        if self.owner is not None and self.owner == account.owner:
            if self.filters is not None:
                return all(item._matches(account.data) for item in self.filters)
            return True
        if self.accounts is not None:
            return account_data.pubkey in self.accounts
        return False


class FilterKind(IntEnum):
    ACCOUNT = 0
    ACCOUNTS_ALL = 1
    SLOT = 2
    BLOCK_META = 3
    TRANSACTION = 4
    TRANSACTIONS_ALL = 5
    BLOCK_ALL = 6
    DELETED_ACCOUNTS = 7
    ACCOUNTS_EXCLUDING = 8


_NEEDS_ACCOUNT_FILTER = {FilterKind.ACCOUNT, FilterKind.ACCOUNTS_EXCLUDING}

_MESSAGE_TYPES = {
    FilterKind.SLOT: SlotMessage,
    FilterKind.BLOCK_META: BlockMetaMessage,
    FilterKind.TRANSACTIONS_ALL: TransactionMessage,
    FilterKind.BLOCK_ALL: BlockMessage,
}


@dataclass(frozen=True)
class Filter:
    """One subscription; ``AccountsAll`` leaves out vote and stake accounts."""

    kind: FilterKind
    account_filter: Optional[AccountFilter] = None
    signature: Optional[Signature] = None

    def __post_init__(self) -> None:
        kind = FilterKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if (self.account_filter is not None) != (kind in _NEEDS_ACCOUNT_FILTER):
            raise ValueError(f"filter {kind.name} has a wrong account filter")
        if (self.signature is not None) != (kind == FilterKind.TRANSACTION):
            raise ValueError(f"filter {kind.name} has a wrong signature")

    def allows(self, message: ChannelMessage) -> bool:
        kind = self.kind
        if kind == FilterKind.ACCOUNT:
            return self.account_filter.allows(message)
        if kind == FilterKind.ACCOUNTS_EXCLUDING:
            return not self.account_filter.allows(message)
        if kind == FilterKind.ACCOUNTS_ALL:
            return isinstance(message, AccountMessage) and (
                message.account_data.account.owner
                not in (VOTE_PROGRAM_ID, STAKE_PROGRAM_ID)
            )
        if kind == FilterKind.DELETED_ACCOUNTS:
            return (
                isinstance(message, AccountMessage)
                and message.account_data.account.lamports == 0
            )
        if kind == FilterKind.TRANSACTION:
            return (
                isinstance(message, TransactionMessage)
                and message.transaction.signatures[0] == self.signature
            )
        return isinstance(message, _MESSAGE_TYPES[kind])

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u32(int(self.kind))
        if self.account_filter is not None:
            _encode_account_filter(encoder, self.account_filter)
        if self.signature is not None:
            self.signature.encode(encoder)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Filter":
        tag = decoder.read_u32()
        try:
            kind = FilterKind(tag)
        except ValueError as exc:
            raise WireError(f"invalid filter tag {tag}") from exc
        if kind in _NEEDS_ACCOUNT_FILTER:
            return cls(kind, account_filter=_decode_account_filter(decoder))
        if kind == FilterKind.TRANSACTION:
            return cls(kind, signature=Signature.decode(decoder))
        return cls(kind)


def _encode_filter_type(encoder: Encoder, item: AccountFilterType) -> None:
    if isinstance(item, DatasizeFilter):
        encoder.write_u32(0)
        encoder.write_u64(item.data_length)
    elif isinstance(item, MemcmpFilter):
        encoder.write_u32(1)
        encoder.write_u64(item.offset)
        encoder.write_u32(0)
        encoder.write_bytes(item.data)
    else:
        raise WireError(f"unknown account filter type {item!r}")


def _decode_filter_type(decoder: Decoder) -> AccountFilterType:
    tag = decoder.read_u32()
    if tag == 0:
        return DatasizeFilter(decoder.read_u64())
    if tag == 1:
        offset = decoder.read_u64()
        data_tag = decoder.read_u32()
        if data_tag != 0:
            raise WireError(f"invalid memcmp data tag {data_tag}")
        return MemcmpFilter(offset, decoder.read_bytes())
    raise WireError(f"invalid account filter type tag {tag}")


def _encode_account_filter(encoder: Encoder, account_filter: AccountFilter) -> None:
    def write_key(key: Pubkey) -> None:
        key.encode(encoder)

    encoder.write_option(account_filter.owner, write_key)
    accounts = None if account_filter.accounts is None else sorted(account_filter.accounts)
    encoder.write_option(accounts, lambda keys: encoder.write_seq(keys, write_key))
    encoder.write_option(
        account_filter.filters,
        lambda items: encoder.write_seq(
            items, lambda item: _encode_filter_type(encoder, item)
        ),
    )


def _decode_account_filter(decoder: Decoder) -> AccountFilter:
    def read_key() -> Pubkey:
        return Pubkey.decode(decoder)

    owner = decoder.read_option(read_key)
    accounts = decoder.read_option(lambda: decoder.read_seq(read_key))
    filters = decoder.read_option(
        lambda: decoder.read_seq(lambda: _decode_filter_type(decoder))
    )
    return AccountFilter(owner=owner, accounts=accounts, filters=filters)