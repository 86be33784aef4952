import pytest

from quicgeyser.wire import Decoder, Encoder, WireError


def test_u64_is_little_endian_fixed_width():
    enc = Encoder()
    enc.write_u64(1)
    assert enc.getvalue() == bytes([1, 0, 0, 0, 0, 0, 0, 0])


@pytest.mark.parametrize(
    "writer, reader, value",
    [
        ("write_u8", "read_u8", 255),
        ("write_u32", "read_u32", 4_000_000_000),
        ("write_u64", "read_u64", 2**64 - 1),
        ("write_i32", "read_i32", -123456),
        ("write_i64", "read_i64", -(2**63)),
        ("write_bool", "read_bool", True),
        ("write_bool", "read_bool", False),
        ("write_str", "read_str", "héllo"),
        ("write_bytes", "read_bytes", b"\x00\x01\x02"),
    ],
)
def test_primitive_round_trip(writer, reader, value):
    enc = Encoder()
    getattr(enc, writer)(value)
    dec = Decoder(enc.getvalue())
    assert getattr(dec, reader)() == value
    assert dec.remaining() == 0


def test_bytes_carry_length_prefix():
    enc = Encoder()
    enc.write_bytes(b"abc")
    value = enc.getvalue()
    assert Decoder(value[:8]).read_u64() == len(b"abc")
    assert value[8:] == b"abc"


def test_raw_has_no_prefix():
    enc = Encoder()
    enc.write_raw(b"xyz")
    assert enc.getvalue() == b"xyz"
    assert Decoder(b"xyzw").read_raw(3) == b"xyz"


def test_option_none_is_single_zero_byte():
    enc = Encoder()
    enc.write_option(None, enc.write_u64)
    assert enc.getvalue() == b"\x00"


def test_option_round_trip():
    enc = Encoder()
    enc.write_option(42, enc.write_u64)
    enc.write_option(None, enc.write_u64)
    dec = Decoder(enc.getvalue())
    assert dec.read_option(dec.read_u64) == 42
    assert dec.read_option(dec.read_u64) is None
    assert dec.remaining() == 0


def test_seq_round_trip():
    items = ["a", "bc", ""]
    enc = Encoder()
    enc.write_seq(items, enc.write_str)
    dec = Decoder(enc.getvalue())
    assert dec.read_seq(dec.read_str) == items


def test_seq_accepts_generator():
    enc = Encoder()
    enc.write_seq((i for i in range(3)), enc.write_u32)
    dec = Decoder(enc.getvalue())
    assert dec.read_seq(dec.read_u32) == [0, 1, 2]


@pytest.mark.parametrize(
    "writer, value",
    [("write_u8", 256), ("write_u64", -1), ("write_i32", 2**31), ("write_u32", "7")],
)
def test_out_of_range_values_raise(writer, value):
    with pytest.raises(WireError):
        getattr(Encoder(), writer)(value)


def test_truncated_buffer_raises():
    with pytest.raises(WireError):
        Decoder(b"\x01\x02").read_u64()


def test_truncated_bytes_raise():
    enc = Encoder()
    enc.write_u64(10)
    with pytest.raises(WireError):
        Decoder(enc.getvalue() + b"abc").read_bytes()


def test_invalid_bool_raises():
    with pytest.raises(WireError):
        Decoder(b"\x02").read_bool()


def test_invalid_option_tag_raises():
    dec = Decoder(b"\x05")
    with pytest.raises(WireError):
        dec.read_option(dec.read_u8)


def test_invalid_utf8_raises():
    enc = Encoder()
    enc.write_bytes(b"\xff\xfe")
    with pytest.raises(WireError):
        Decoder(enc.getvalue()).read_str()


def test_remaining_tracks_position():
    dec = Decoder(b"\x01\x02\x03\x04\x05")
    dec.read_u8()
    assert dec.remaining() == 4
    dec.read_u32()
    assert dec.remaining() == 0