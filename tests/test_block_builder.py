import os
import queue

import pytest

from quicgeyser.account import AccountData, SolanaAccount
from quicgeyser.block_builder import BlockBuilder, build_blocks, start_block_building_thread
from quicgeyser.block_meta import BlockMeta
from quicgeyser.channel_message import (
    AccountMessage,
    BlockMessage,
    BlockMetaMessage,
    SlotMessage,
    TransactionMessage,
)
from quicgeyser.compression import CompressionType
from quicgeyser.primitives import CommitmentConfig, Hash, Pubkey, Signature, SlotIdentifier
from quicgeyser.transaction import MessageHeader, Transaction, TransactionMeta, V0Message

U64_MAX = 2**64 - 1


def make_account(pubkey, write_version, slot=5, init=False, lamports=12345):
    return AccountMessage(
        AccountData(
            pubkey=pubkey,
            account=SolanaAccount(
                lamports=lamports,
                data=os.urandom(100),
                owner=Pubkey.new_unique(),
                executable=False,
                rent_epoch=U64_MAX,
            ),
            write_version=write_version,
        ),
        slot,
        init,
    )


def make_meta(slot=5, count=2):
    return BlockMeta(
        parent_slot=slot - 1,
        slot=slot,
        parent_blockhash=str(Hash.new_unique()),
        blockhash=str(Hash.new_unique()),
        rewards=[],
        block_height=4,
        executed_transaction_count=count,
        entries_count=2,
        block_time=0,
    )


def make_transaction(slot, key):
    return Transaction(
        slot_identifier=SlotIdentifier(slot),
        signatures=[Signature.new_unique()],
        message=V0Message(
            header=MessageHeader(1, 0, 0),
            account_keys=[key],
            recent_blockhash=Hash.new_unique(),
        ),
        is_vote=False,
        transaction_meta=TransactionMeta(
            log_messages=["toto"], compute_units_consumed=1234
        ),
        index=0,
    )


@pytest.fixture
def scenario():
    acc1_pk = Pubkey.new_unique()
    acc1 = make_account(acc1_pk, 1)
    acc2 = make_account(Pubkey.new_unique(), 1)
    acc3 = make_account(acc1_pk, 2)
    acc4 = make_account(acc1_pk, 0)
    tx1 = make_transaction(5, acc1_pk)
    tx2 = make_transaction(6, acc1_pk)
    tx3 = make_transaction(5, acc1_pk)
    return {
        "accounts": [acc1, acc2, acc3, acc4],
        "expected_accounts": {
            a.account_data.pubkey: a.account_data.account.data for a in (acc2, acc3)
        },
        "txs": (tx1, tx2, tx3),
    }


def check_block(message, meta, scenario):
    assert isinstance(message, BlockMessage)
    block = message.block
    tx1, _, tx3 = scenario["txs"]
    transactions = block.get_transactions()
    accounts = {acc.pubkey: acc.data for acc in block.get_accounts()}
    assert block.meta == meta
    assert len(transactions) == 2
    assert transactions == [tx1, tx3]
    assert accounts == scenario["expected_accounts"]


def run_in_thread(messages, compression=None):
    inbox = queue.Queue()
    outbox = queue.Queue()
    thread = start_block_building_thread(
        inbox, outbox, compression or CompressionType.none(), True
    )
    for message in messages:
        inbox.put(message)
    inbox.put(None)
    thread.join(timeout=10)
    return outbox


def test_block_creation_transactions_after_blockmeta(scenario):
    meta = make_meta()
    tx1, tx2, tx3 = scenario["txs"]
    messages = scenario["accounts"] + [
        BlockMetaMessage(meta),
        TransactionMessage(tx1),
        TransactionMessage(tx2),
        TransactionMessage(tx3),
    ]
    outbox = run_in_thread(messages)
    check_block(outbox.get(timeout=5), meta, scenario)
    assert outbox.empty()


def test_block_creation_blockmeta_after_transactions(scenario):
    meta = make_meta()
    tx1, tx2, tx3 = scenario["txs"]
    messages = scenario["accounts"] + [
        TransactionMessage(tx1),
        TransactionMessage(tx2),
        TransactionMessage(tx3),
        BlockMetaMessage(meta),
    ]
    outbox = run_in_thread(messages)
    check_block(outbox.get(timeout=5), meta, scenario)


def test_block_creation_incomplete_block_after_slot_notification(scenario):
    meta = make_meta()
    tx1, tx2, tx3 = scenario["txs"]
    builder = BlockBuilder(CompressionType.none(), True)
    for message in scenario["accounts"]:
        assert builder.process(message) is None
    assert builder.process(BlockMetaMessage(meta)) is None
    assert builder.process(TransactionMessage(tx1)) is None
    assert builder.process(TransactionMessage(tx2)) is None
    result = builder.process(TransactionMessage(tx3))
    check_block(result, meta, scenario)
    assert builder.pending_slots == [6]


def test_block_creation_incomplete_slot(scenario):
    meta = make_meta(count=5)
    tx1, tx2, tx3 = scenario["txs"]
    emitted = []
    builder = BlockBuilder(CompressionType.none(), True, emitted.append)
    for message in scenario["accounts"]:
        builder.process(message)
    builder.process(BlockMetaMessage(meta))
    builder.process(TransactionMessage(tx1))
    builder.process(TransactionMessage(tx2))
    assert builder.process(SlotMessage(5, 4, CommitmentConfig.processed())) is None
    builder.process(TransactionMessage(tx3))
    assert emitted == []
    result = builder.process(SlotMessage(5, 4, CommitmentConfig.finalized()))
    check_block(result, meta, scenario)
    assert emitted == [result]


def test_build_blocks_with_lz4(scenario):
    meta = make_meta()
    tx1, tx2, tx3 = scenario["txs"]
    inbox = queue.Queue()
    outbox = queue.Queue()
    for message in scenario["accounts"] + [
        BlockMetaMessage(meta),
        TransactionMessage(tx1),
        TransactionMessage(tx2),
        TransactionMessage(tx3),
    ]:
        inbox.put(message)
    inbox.put(None)
    build_blocks(inbox, outbox, CompressionType.lz4_fast(8), True)
    result = outbox.get_nowait()
    assert result.block.compression_type == CompressionType.lz4_fast(8)
    check_block(result, meta, scenario)


def test_accounts_left_out_when_disabled(scenario):
    meta = make_meta()
    tx1, _, tx3 = scenario["txs"]
    builder = BlockBuilder(CompressionType.none(), False)
    for message in scenario["accounts"]:
        builder.process(message)
    assert builder.pending_slots == []
    builder.process(BlockMetaMessage(meta))
    builder.process(TransactionMessage(tx1))
    result = builder.process(TransactionMessage(tx3))
    assert result.block.get_accounts() == []
    assert result.block.accounts_updated_count == 0


def test_init_account_updates_are_ignored():
    builder = BlockBuilder(CompressionType.none(), True)
    builder.process(make_account(Pubkey.new_unique(), 1, init=True))
    assert builder.pending_slots == []


def test_finalized_slot_without_meta_dispatches_nothing():
    builder = BlockBuilder(CompressionType.none(), True)
    builder.process(make_account(Pubkey.new_unique(), 1, slot=9))
    assert builder.pending_slots == [9]
    assert builder.process(SlotMessage(9, 8, CommitmentConfig.finalized())) is None
    assert builder.pending_slots == []


def test_empty_block_dispatched_on_meta():
    meta = make_meta(slot=7, count=0)
    builder = BlockBuilder(CompressionType.none(), True)
    result = builder.process(BlockMetaMessage(meta))
    assert result.block.meta == meta
    assert result.block.get_transactions() == []


def test_finished_block_is_rejected():
    builder = BlockBuilder(CompressionType.none(), True)
    block_message = BlockMetaMessage(make_meta(slot=3, count=0))
    built = builder.process(block_message)
    with pytest.raises(ValueError):
        builder.process(built)