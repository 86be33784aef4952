"""A finished block: metadata plus compressed transactions and accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .account import Account
from .block_meta import BlockMeta
from .compression import CompressionType
from .transaction import Transaction
from .wire import Decoder, Encoder

logger = logging.getLogger(__name__)


@dataclass
class Block:
    meta: BlockMeta
    transactions: bytes
    accounts_updated_in_block: bytes
    accounts_updated_count: int
    compression_type: CompressionType

    def __post_init__(self) -> None:
        self.transactions = bytes(self.transactions)
        self.accounts_updated_in_block = bytes(self.accounts_updated_in_block)

    @classmethod
    def build(
        cls,
        meta: BlockMeta,
        transactions: List[Transaction],
        accounts: List[Account],
        compression_type: CompressionType,
    ) -> "Block":
        """Serialise and compress the transactions and accounts of a block."""
        transactions_encoder = Encoder()
        transactions_encoder.write_seq(
            transactions, lambda item: item.encode(transactions_encoder)
        )
        accounts_encoder = Encoder()
        accounts_encoder.write_seq(accounts, lambda item: item.encode(accounts_encoder))
        return cls(
            meta=meta,
            transactions=compression_type.compress(transactions_encoder.getvalue()),
            accounts_updated_in_block=compression_type.compress(
                accounts_encoder.getvalue()
            ),
            accounts_updated_count=len(accounts),
            compression_type=compression_type,
        )

    def get_transactions(self) -> List[Transaction]:
        decoder = Decoder(self.compression_type.decompress(self.transactions))
        transactions = decoder.read_seq(lambda: Transaction.decode(decoder))
        if len(transactions) != self.meta.executed_transaction_count:
            logger.error(
                "transactions vector size is not equal to expected size in meta %d != %d",
                len(transactions),
                self.meta.executed_transaction_count,
            )
        return transactions

    def get_accounts(self) -> List[Account]:
        decoder = Decoder(self.compression_type.decompress(self.accounts_updated_in_block))
        accounts = decoder.read_seq(lambda: Account.decode(decoder))
        if len(accounts) != self.accounts_updated_count:
            logger.error(
                "accounts vector size is not equal to expected %d != %d",
                len(accounts),
                self.accounts_updated_count,
            )
        return accounts

    def encode(self, encoder: Encoder) -> None:
        self.meta.encode(encoder)
        encoder.write_bytes(self.transactions)
        encoder.write_bytes(self.accounts_updated_in_block)
        encoder.write_u64(self.accounts_updated_count)
        self.compression_type.encode(encoder)

    @classmethod
    def decode(cls, decoder: Decoder) -> "Block":
        return cls(
            meta=BlockMeta.decode(decoder),
            transactions=decoder.read_bytes(),
            accounts_updated_in_block=decoder.read_bytes(),
            accounts_updated_count=decoder.read_u64(),
            compression_type=CompressionType.decode(decoder),
        )