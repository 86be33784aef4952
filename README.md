# quicgeyser

Data model, binary wire format, subscription filters and block assembly for
streaming validator updates (accounts, slots, block metadata, transactions and
whole blocks) to subscribed clients.

## What is in the package

- `quicgeyser.wire`: `Encoder` and `Decoder` for a compact binary encoding.
  It uses fixed-width little-endian integers, one-byte booleans, byte strings
  and sequences with a u64 length in front, and options with a one-byte tag.
  Bad or truncated input raises `WireError`, a subclass of `ValueError`.
- `quicgeyser.primitives`: `Pubkey` (32 bytes), `Signature` (64 bytes) and
  `Hash` (32 bytes). Each one prints as base58 and parses with
  `from_string`. The module also has `b58encode` and `b58decode`,
  `CommitmentLevel`, `CommitmentConfig` (`processed()`, `confirmed()`,
  `finalized()`, `is_finalized()`) and `SlotIdentifier`.
- `quicgeyser.compression`: `CompressionType.none()`,
  `CompressionType.lz4_fast(speed)`, `CompressionType.lz4(level)` and
  `CompressionType.default()` (LZ4 fast, speed 8). `compress` produces an LZ4
  block with the original size stored in front. Empty input stays empty.
  `decompress` reverses it.
- `quicgeyser.account`: `SolanaAccount` holds full account state.
  `AccountData` is an update from the validator. `Account` is an update as
  sent to subscribers. `Account.new(...)` compresses the data, and
  `Account.solana_account()` gives it back uncompressed.
- `quicgeyser.block_meta`: `SlotMeta`, `BlockMeta`, `Reward`, `RewardType`.
- `quicgeyser.transaction`: `Transaction`, `TransactionMeta`, `V0Message`,
  `MessageHeader`, `CompiledInstruction`, `MessageAddressTableLookup`,
  `LoadedAddresses`, `TransactionError`, `TransactionReturnData` and the
  serialisable inner-instruction and token-balance records.
- `quicgeyser.block`: `Block.build(meta, transactions, accounts,
  compression_type)` encodes and compresses a block's contents.
  `get_transactions()` and `get_accounts()` decode them again. If a count
  differs from the one stored in the block, an error is logged.
- `quicgeyser.channel_message`: the messages given to the block builder and
  the filters. These are `AccountMessage`, `SlotMessage`, `BlockMetaMessage`,
  `TransactionMessage` and `BlockMessage`.
- `quicgeyser.message`: the client/server messages. These are `AccountMsg`,
  `SlotMsg`, `BlockMetaMsg`, `TransactionMsg`, `BlockMsg`, `FiltersMsg` and
  `Ping`. The module also provides `encode_message`, `decode_message` and
  stream framing with `to_binary_stream`, `from_binary_stream` and
  `from_binary_stream_binary`.
- `quicgeyser.filters`: `Filter`, `FilterKind`, `AccountFilter`,
  `DatasizeFilter` and `MemcmpFilter`.
- `quicgeyser.stream_buffer`: `StreamBuffer`, a bounded byte buffer. Data is
  appended at the back and consumed from the front.
- `quicgeyser.block_builder`: `BlockBuilder`, `build_blocks` and
  `start_block_building_thread`.
- `quicgeyser.config`: `ConfigQuicPlugin`, `QuicParameters`,
  `CompressionParameters`, `ConnectionParameters`, the default constants and
  the error classes (`QuicGeyserError`, `ConfigLoadError`,
  `ServerConfigError`, `MessageChannelClosed`, `UnsupportedVersion`).
- `quicgeyser.net`: `parse_host` takes a literal IP address and
  `parse_host_port` resolves `"host:port"` to `(address, port)`. Both raise
  `ValueError` on bad input.

## Installation

```
pip install quicgeyser
```

## Framing messages

Each message on a stream has an 8-byte little-endian length in front of it.
`from_binary_stream` returns `None` until the whole frame has arrived. Once it
has, it returns the message and the number of bytes the frame took.

```python
from quicgeyser.message import SlotMsg, to_binary_stream, from_binary_stream
from quicgeyser.block_meta import SlotMeta
from quicgeyser.primitives import CommitmentConfig

msg = SlotMsg(SlotMeta(slot=73282, parent=8392983,
                       commitment_config=CommitmentConfig.finalized()))
frame = to_binary_stream(msg)

assert from_binary_stream(frame[:10]) is None
decoded, consumed = from_binary_stream(frame)
assert decoded == msg and consumed == len(frame)
```

`StreamBuffer(buffer_len)` can hold bytes that have arrived but not yet been
read. `append_bytes` accepts data only if it leaves free room, and it returns
whether it did. `consume(n)` drops `n` bytes from the front.

## Filters

```python
from quicgeyser.filters import AccountFilter, Filter, FilterKind, MemcmpFilter
from quicgeyser.primitives import Pubkey

owner = Pubkey.new_unique()
subscription = Filter(
    FilterKind.ACCOUNT,
    account_filter=AccountFilter(
        owner=owner, filters=[MemcmpFilter(offset=2, data=b"\x03\x04\x05")]
    ),
)
# subscription.allows(channel_message) -> bool
```

How each kind matches:

- `ACCOUNTS_ALL` matches every account update except those owned by the vote
  or stake programs.
- `DELETED_ACCOUNTS` matches updates with zero lamports.
- `TRANSACTION` compares the first signature of a transaction.
- `ACCOUNTS_EXCLUDING` matches whatever its account filter rejects.

## Building blocks

`BlockBuilder.process(message)` takes one channel message at a time. It
returns a `BlockMessage` once a slot's block is complete, and `None` otherwise.
A block is complete in either of two cases:

- its `BlockMeta` has arrived together with as many transactions as
  `executed_transaction_count` says;
- a finalized `SlotMessage` has arrived for that slot.

Account updates flagged `init` are ignored. When `build_blocks_with_accounts`
is true, the builder keeps the update with the highest write version for each
account. A finished `BlockMessage` given to `process` raises `ValueError`.

To run the builder on a thread, use queues:

```python
import queue
from quicgeyser.block_builder import start_block_building_thread
from quicgeyser.compression import CompressionType

inbox, outbox = queue.Queue(), queue.Queue()
thread = start_block_building_thread(inbox, outbox, CompressionType.none(), True)
# put channel messages on `inbox`; finished BlockMessage objects appear on `outbox`.
inbox.put(None)  # stops the thread
thread.join()
```

## Loading a configuration

```python
from quicgeyser.config import ConfigQuicPlugin

config = ConfigQuicPlugin.load("config.json")
print(config.address, config.quic_parameters.max_number_of_streams_per_client)
```

Missing keys take their defaults. The default address is `("::", 10800)` and
the default compression is LZ4 fast at speed 8. Unknown top-level keys, values
of the wrong type, bad addresses and unreadable files raise `ConfigLoadError`.
`to_dict()` gives back a JSON-ready mapping.

## What this package does not do

This package has no network transport. It contains no QUIC server, no client
and no validator plugin that would send or receive these messages. It defines
the data, the encoding, the filtering and the block assembly that such
components would use. It does not start any command-line program.

## Running the tests

From a checkout of the project:

```
pip install -e .[test]
pytest
```