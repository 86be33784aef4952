import pytest

from quicgeyser.compression import CompressionKind, CompressionType
from quicgeyser.wire import Decoder, Encoder, WireError

SAMPLE = bytes(x % 255 for x in range(1000))
ALL_TYPES = [CompressionType.none(), CompressionType.lz4_fast(8), CompressionType.lz4(3)]
LZ4_TYPES = ALL_TYPES[1:]


def test_default_is_fast_lz4_speed_8():
    assert CompressionType.default() == CompressionType.lz4_fast(8)
    assert CompressionType() == CompressionType.default()


def test_none_keeps_data():
    assert CompressionType.none().compress(SAMPLE) == SAMPLE
    assert CompressionType.none().decompress(SAMPLE) == SAMPLE


@pytest.mark.parametrize("ctype", ALL_TYPES)
def test_empty_data_stays_empty(ctype):
    assert CompressionType.compress(ctype, b"") == b""
    assert CompressionType.decompress(ctype, b"") == b""


@pytest.mark.parametrize("ctype", ALL_TYPES)
def test_round_trip(ctype):
    compressed = CompressionType.compress(ctype, SAMPLE)
    assert CompressionType.decompress(ctype, compressed) == SAMPLE


@pytest.mark.parametrize("ctype", LZ4_TYPES)
def test_lz4_stores_size_and_shrinks(ctype):
    data = b"abcd" * 500
    out = CompressionType.compress(ctype, data)
    assert int.from_bytes(out[:4], "little") == len(data)
    assert len(out) < len(data)


def test_garbage_fails_to_decompress():
    with pytest.raises(ValueError):
        CompressionType.lz4_fast(1).decompress(b"\x05\x00\x00\x00\xff\xff\xff")


@pytest.mark.parametrize("ctype", ALL_TYPES)
def test_encode_round_trip(ctype):
    enc = Encoder()
    ctype.encode(enc)
    dec = Decoder(enc.getvalue())
    assert CompressionType.decode(dec) == ctype
    assert dec.remaining() == 0
    assert Decoder(enc.getvalue()).read_u32() == ctype.kind.value


def test_fast_parameter_on_wire():
    enc = Encoder()
    CompressionType.lz4_fast(8).encode(enc)
    dec = Decoder(enc.getvalue())
    assert dec.read_u32() == CompressionKind.LZ4_FAST
    assert dec.read_i32() == 8


def test_unknown_tag():
    enc = Encoder()
    enc.write_u32(len(CompressionKind))
    with pytest.raises(WireError):
        CompressionType.decode(Decoder(enc.getvalue()))


def test_ordering_follows_variant_order():
    assert CompressionType.none() < CompressionType.lz4_fast(100) < CompressionType.lz4(0)


def test_parameter_range_checked():
    with pytest.raises(ValueError):
        CompressionType.lz4(2**31)