"""Messages passed from the validator side to the server and block builder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .account import AccountData
from .block import Block
from .block_meta import BlockMeta
from .primitives import CommitmentConfig
from .transaction import Transaction


@dataclass(frozen=True)
class AccountMessage:
    """An account update in a slot; ``init`` marks updates sent at startup."""

    account_data: AccountData
    slot: int
    init: bool


@dataclass(frozen=True)
class SlotMessage:
    """A slot reached a new commitment level."""

    slot: int
    parent: int
    commitment: CommitmentConfig


@dataclass(frozen=True)
class BlockMetaMessage:
    meta: BlockMeta


@dataclass(frozen=True)
class TransactionMessage:
    transaction: Transaction


@dataclass(frozen=True)
class BlockMessage:
    block: Block


ChannelMessage = Union[
    AccountMessage, SlotMessage, BlockMetaMessage, TransactionMessage, BlockMessage
]