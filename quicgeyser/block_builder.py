"""Assembles finished blocks from streamed metadata, transactions and account updates."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .account import Account, AccountData
from .block import Block
from .block_meta import BlockMeta
from .channel_message import (
    AccountMessage,
    BlockMessage,
    BlockMetaMessage,
    ChannelMessage,
    SlotMessage,
    TransactionMessage,
)
from .compression import CompressionType
from .primitives import Pubkey, SlotIdentifier
from .transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class _PartialBlock:
    meta: Optional[BlockMeta] = None
    transactions: List[Transaction] = field(default_factory=list)
    account_updates: Dict[Pubkey, AccountData] = field(default_factory=dict)


class BlockBuilder:
    """Collects the parts of each slot and emits a block once it is complete.

    A block is complete when its metadata has arrived together with as many
    transactions as the metadata announces, or when its slot is finalized.
    """

    def __init__(
        self,
        compression_type: CompressionType,
        build_blocks_with_accounts: bool,
        output: Optional[Callable[[BlockMessage], None]] = None,
    ) -> None:
        self.compression_type = compression_type
        self.build_blocks_with_accounts = build_blocks_with_accounts
        self._output = output
        self._partial_blocks: Dict[int, _PartialBlock] = {}

    @property
    def pending_slots(self) -> List[int]:
        """Slots with data that has not been dispatched yet, in order."""
        return sorted(self._partial_blocks)

    def _warn_if_late(self, slot: int, what: str) -> None:
        if self._partial_blocks:
            lowest = min(self._partial_blocks)
            if lowest > slot:
                logger.error(
                    "%s update is too late the slot data has already been dispatched "
                    "lowest slot: %d, slot: %d",
                    what,
                    lowest,
                    slot,
                )

    def _partial(self, slot: int) -> _PartialBlock:
        return self._partial_blocks.setdefault(slot, _PartialBlock())

    def process(self, message: ChannelMessage) -> Optional[BlockMessage]:
        """Take one channel message; return the block it completed, if any."""
        if isinstance(message, AccountMessage):
            self._on_account(message)
            return None
        if isinstance(message, SlotMessage):
            if message.commitment.is_finalized():
                return self._dispatch(message.slot)
            return None
        if isinstance(message, BlockMetaMessage):
            return self._on_block_meta(message.meta)
        if isinstance(message, TransactionMessage):
            return self._on_transaction(message.transaction)
        if isinstance(message, BlockMessage):
            raise ValueError("the block builder does not accept finished blocks")
        raise TypeError(f"not a channel message: {message!r}")

    def _on_account(self, message: AccountMessage) -> None:
        if message.init or not self.build_blocks_with_accounts:
            return
        self._warn_if_late(message.slot, "Account")
        account_data = message.account_data
        updates = self._partial(message.slot).account_updates
        previous = updates.get(account_data.pubkey)
        if previous is None or previous.write_version < account_data.write_version:
            updates[account_data.pubkey] = account_data

    def _on_block_meta(self, meta: BlockMeta) -> Optional[BlockMessage]:
        self._warn_if_late(meta.slot, "Blockmeta")
        partial = self._partial(meta.slot)
        if partial.meta is not None:
            logger.error("Block meta has already been set")
        else:
            partial.meta = meta
        if meta.executed_transaction_count == len(partial.transactions):
            return self._dispatch(meta.slot)
        return None

    def _on_transaction(self, transaction: Transaction) -> Optional[BlockMessage]:
        slot = transaction.slot_identifier.slot
        self._warn_if_late(slot, "Transactions")
        partial = self._partial(slot)
        partial.transactions.append(transaction)
        if (
            partial.meta is not None
            and partial.meta.executed_transaction_count == len(partial.transactions)
        ):
            return self._dispatch(slot)
        return None

    def _dispatch(self, slot: int) -> Optional[BlockMessage]:
        partial = self._partial_blocks.pop(slot, None)
        if partial is None:
            return None
        meta = partial.meta
        if meta is None:
            logger.error(
                "Block was dispatched without any meta data, cannot dispatch the block %d",
                slot,
            )
            return None
        transactions = partial.transactions
        if len(transactions) != meta.executed_transaction_count:
            logger.error(
                "for block at slot %d transaction size mismatch %d!=%d",
                slot,
                len(transactions),
                meta.executed_transaction_count,
            )
        accounts = [
            Account(
                slot_identifier=SlotIdentifier(slot),
                pubkey=pubkey,
                owner=data.account.owner,
                lamports=data.account.lamports,
                executable=data.account.executable,
                rent_epoch=data.account.rent_epoch,
                write_version=data.write_version,
                data=data.account.data,
                compression_type=CompressionType.none(),
                data_length=len(data.account.data),
            )
            for pubkey, data in partial.account_updates.items()
        ]
        try:
            block = Block.build(meta, transactions, accounts, self.compression_type)
        except (ValueError, TypeError) as exc:
            logger.error("block building failed because of error: %s", exc)
            return None
        logger.info("Dispatching block for slot %d", slot)
        message = BlockMessage(block)
        if self._output is not None:
            self._output(message)
        return message


def build_blocks(
    channel_messages: "queue.Queue[Optional[ChannelMessage]]",
    output: "queue.Queue[BlockMessage]",
    compression_type: CompressionType,
    build_blocks_with_accounts: bool,
) -> None:
    """Read messages until a ``None`` arrives, putting finished blocks on ``output``."""
    builder = BlockBuilder(compression_type, build_blocks_with_accounts, output.put)
    for message in iter(channel_messages.get, None):
        builder.process(message)


def start_block_building_thread(
    channel_messages: "queue.Queue[Optional[ChannelMessage]]",
    output: "queue.Queue[BlockMessage]",
    compression_type: CompressionType,
    build_blocks_with_accounts: bool,
) -> threading.Thread:
    """Run :func:`build_blocks` on a daemon thread and return the thread."""
    thread = threading.Thread(
        target=build_blocks,
        args=(channel_messages, output, compression_type, build_blocks_with_accounts),
        name="block-builder",
        daemon=True,
    )
    thread.start()
    return thread