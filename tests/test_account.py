import pytest

from quicgeyser.account import Account, AccountData, SolanaAccount
from quicgeyser.compression import CompressionType
from quicgeyser.primitives import Pubkey, SlotIdentifier
from quicgeyser.wire import Decoder, Encoder, WireError

U64_MAX = 2**64 - 1


def _solana_account(data):
    return SolanaAccount(
        lamports=12345,
        data=data,
        owner=Pubkey.new_unique(),
        executable=False,
        rent_epoch=U64_MAX,
    )


def _round_trip(value):
    encoder = Encoder()
    value.encode(encoder)
    decoder = Decoder(encoder.getvalue())
    decoded = type(value).decode(decoder)
    assert decoder.remaining() == 0
    return decoded


COMPRESSIBLE = bytes(range(10)) * 100


def test_new_without_compression_keeps_data():
    solana = _solana_account(COMPRESSIBLE)
    account = Account.new(
        Pubkey.new_unique(), solana, CompressionType.none(), SlotIdentifier(5), 3
    )
    assert account.data == COMPRESSIBLE
    assert account.data_length == len(COMPRESSIBLE)
    assert account.slot_identifier.slot == 5
    assert account.write_version == 3
    assert account.solana_account() == solana


@pytest.mark.parametrize(
    "compression", [CompressionType.lz4_fast(8), CompressionType.lz4(4)]
)
def test_new_with_compression_round_trips(compression):
    solana = _solana_account(COMPRESSIBLE)
    account = Account.new(Pubkey.new_unique(), solana, compression, SlotIdentifier(1), 0)
    assert len(account.data) < len(COMPRESSIBLE)
    assert account.data_length == len(COMPRESSIBLE)
    assert account.solana_account() == solana


def test_empty_data_stays_empty():
    solana = _solana_account(b"")
    account = Account.new(
        Pubkey.new_unique(), solana, CompressionType.lz4_fast(8), SlotIdentifier(1), 0
    )
    assert account.data == b""
    assert account.data_length == 0
    assert account.solana_account().data == b""


def test_account_encode_round_trip():
    account = Account.new(
        Pubkey.new_unique(),
        _solana_account(COMPRESSIBLE),
        CompressionType.lz4_fast(8),
        SlotIdentifier(938920),
        9403,
    )
    assert _round_trip(account) == account


def test_solana_account_round_trip():
    solana = _solana_account(bytes([1, 2, 3, 4]))
    assert _round_trip(solana) == solana


def test_accounts_order_by_slot_first():
    accounts = [
        Account.new(Pubkey.new_unique(), _solana_account(b"x"), CompressionType.none(),
                    SlotIdentifier(slot), 0)
        for slot in (7, 2, 5)
    ]
    assert [a.slot_identifier.slot for a in sorted(accounts)] == [2, 5, 7]


def test_account_data_equality():
    pubkey = Pubkey.new_unique()
    solana = _solana_account(b"abc")
    assert AccountData(pubkey, solana, 1) == AccountData(pubkey, solana, 1)
    assert AccountData(pubkey, solana, 1) != AccountData(pubkey, solana, 2)


def test_truncated_account_fails():
    encoder = Encoder()
    Account.new(
        Pubkey.new_unique(), _solana_account(b"abc"), CompressionType.none(),
        SlotIdentifier(1), 0,
    ).encode(encoder)
    with pytest.raises(WireError):
        Account.decode(Decoder(encoder.getvalue()[:40]))