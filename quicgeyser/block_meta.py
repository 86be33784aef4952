"""Slot and block metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from .primitives import CommitmentConfig
from .wire import Decoder, Encoder, WireError


class RewardType(IntEnum):
    FEE = 0
    RENT = 1
    STAKING = 2
    VOTING = 3


def _read_reward_type(decoder: Decoder) -> RewardType:
    tag = decoder.read_u32()
    try:
        return RewardType(tag)
    except ValueError as exc:
        raise WireError(f"invalid reward type {tag}") from exc


@dataclass(frozen=True)
class Reward:
    """A reward paid out in a block."""

    pubkey: str
    lamports: int
    post_balance: int
    reward_type: Optional[RewardType] = None
    commission: Optional[int] = None

    def encode(self, encoder: Encoder) -> None:
        encoder.write_str(self.pubkey)
        encoder.write_i64(self.lamports)
        encoder.write_u64(self.post_balance)
        encoder.write_option(
            self.reward_type, lambda kind: encoder.write_u32(int(kind))
        )
        encoder.write_option(self.commission, encoder.write_u8)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Reward":
        return cls(
            pubkey=decoder.read_str(),
            lamports=decoder.read_i64(),
            post_balance=decoder.read_u64(),
            reward_type=decoder.read_option(lambda: _read_reward_type(decoder)),
            commission=decoder.read_option(decoder.read_u8),
        )


@dataclass(frozen=True)
class SlotMeta:
    slot: int
    parent: int
    commitment_config: CommitmentConfig

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u64(self.slot)
        encoder.write_u64(self.parent)
        self.commitment_config.encode(encoder)

    @classmethod
    def decode(cls, decoder: Decoder) -> "SlotMeta":
        return cls(
            slot=decoder.read_u64(),
            parent=decoder.read_u64(),
            commitment_config=CommitmentConfig.decode(decoder),
        )


@dataclass
class BlockMeta:
    parent_slot: int
    slot: int
    parent_blockhash: str
    blockhash: str
    rewards: List[Reward]
    block_height: Optional[int]
    executed_transaction_count: int
    entries_count: int
    block_time: int

    def encode(self, encoder: Encoder) -> None:
        encoder.write_u64(self.parent_slot)
        encoder.write_u64(self.slot)
        encoder.write_str(self.parent_blockhash)
        encoder.write_str(self.blockhash)
        encoder.write_seq(self.rewards, lambda reward: reward.encode(encoder))
        encoder.write_option(self.block_height, encoder.write_u64)
        encoder.write_u64(self.executed_transaction_count)
        encoder.write_u64(self.entries_count)
        encoder.write_u64(self.block_time)

    @classmethod
    def decode(cls, decoder: Decoder) -> "BlockMeta":
        return cls(
            parent_slot=decoder.read_u64(),
            slot=decoder.read_u64(),
            parent_blockhash=decoder.read_str(),
            blockhash=decoder.read_str(),
            rewards=decoder.read_seq(lambda: Reward.decode(decoder)),
            block_height=decoder.read_option(decoder.read_u64),
            executed_transaction_count=decoder.read_u64(),
            entries_count=decoder.read_u64(),
            block_time=decoder.read_u64(),
        )