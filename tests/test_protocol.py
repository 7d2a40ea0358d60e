from array import array

import pytest

from msgp.protocol import (
    INCOMPLETE,
    MAX_PAYLOAD_LEN,
    FrameFormatError,
    Located,
    Malformed,
    PayloadTooLarge,
    decode,
    decode_strict,
    encode,
    encode_prefix,
    find_frame,
    prefix_size,
)


def test_encode_empty():
    assert encode(b"") == b"\x00"


def test_encode_short():
    assert encode(b"\x01\x02") == b"\x02\x01\x02"


@pytest.mark.parametrize(
    "length, prefix",
    [
        (127, b"\x7f"),
        (128, b"\x81\x00"),
        (129, b"\x81\x01"),
        (16383, b"\xff\x7f"),
        (16384, b"\x81\x80\x00"),
        (16385, b"\x81\x80\x01"),
        (2097151, b"\xff\xff\x7f"),
        (2097152, b"\x81\x80\x80\x00"),
        (2097153, b"\x81\x80\x80\x01"),
    ],
)
def test_encode_prefix_bytes(length, prefix):
    payload = b"\xff" * length
    out = encode(payload)
    assert out[:len(prefix)] == prefix
    assert out[len(prefix):] == payload
    assert len(out) == len(prefix) + length


@pytest.mark.parametrize(
    "length, size",
    [(0, 1), (127, 1), (128, 2), (16383, 2), (16384, 3), (2097151, 3), (2097152, 4), (268435455, 4)],
)
def test_prefix_size_is_minimal(length, size):
    assert prefix_size(length) == size
    assert len(encode_prefix(length)) == size


def test_largest_prefix():
    # A full 256 MiB round trip needs several payload-sized copies; the
    # prefix bytes and the located range are all that depend on the length.
    assert encode_prefix(MAX_PAYLOAD_LEN - 1) == b"\xff\xff\xff\x7f"
    res = find_frame(b"\xff\xff\xff\x7f")
    assert res == Located(4, 4 + MAX_PAYLOAD_LEN - 1)


def test_encode_too_large():
    with pytest.raises(PayloadTooLarge):
        encode_prefix(MAX_PAYLOAD_LEN)
    with pytest.raises(PayloadTooLarge):
        encode(bytes(MAX_PAYLOAD_LEN))
    with pytest.raises(ValueError):
        prefix_size(-1)


def test_encode_accepts_bytes_like():
    assert encode(bytearray(b"abc")) == b"\x03abc"
    assert encode(memoryview(b"abc")) == b"\x03abc"


@pytest.mark.parametrize("length", [0, 1, 127, 128, 129, 16383, 16384, 16385, 2097151, 2097152, 2097153])
def test_roundtrip(length):
    payload = bytes(i & 0xFF for i in range(length)) if length < 20000 else b"\xa5" * length
    assert decode(encode(payload)) == payload


def test_encode_counts_bytes_not_items():
    items = array("I", [1, 2])
    framed = encode(memoryview(items))
    assert framed[:1] == bytes([items.itemsize * 2])
    assert decode(framed) == items.tobytes()


def test_find_frame_at_offset():
    buf = b"junk" + encode(b"hello")
    assert find_frame(buf, 4) == Located(5, 10)
    assert find_frame(buf, 4).length == 5


def test_find_frame_zero_length_is_located():
    res = find_frame(b"\x00")
    assert res == Located(1, 1)
    assert res is not INCOMPLETE


def test_find_frame_incomplete():
    assert find_frame(b"") is INCOMPLETE
    assert find_frame(b"\x81\x80") is INCOMPLETE
    assert find_frame(b"\x00\x81", 1) is INCOMPLETE


def test_find_frame_range_past_end():
    res = find_frame(b"\x03\x01\x02")
    assert res == Located(1, 4)


def test_find_frame_malformed():
    res = find_frame(b"\x80\x80\x80\x80\x00")
    assert isinstance(res, Malformed)
    assert res.offset == 0
    assert isinstance(res.to_error(), FrameFormatError)


def test_decode_no_value():
    assert decode(b"") is None
    assert decode(b"\x81\x80") is None
    assert decode(b"\x03\x01\x02") is None
    assert decode(b"\xff\xff\xff\xff\x01") is None


def test_decode_ignores_trailing_bytes():
    assert decode(encode(b"ab") + b"more") == b"ab"


def test_decode_copies():
    buf = bytearray(encode(b"xyz"))
    out = decode(buf)
    buf[1] = 0
    assert out == b"xyz"
    assert isinstance(out, bytes)


def test_decode_strict():
    assert decode_strict(encode(b"ok")) == b"ok"
    assert decode_strict(b"\x81") is None
    assert decode_strict(b"\x05ab") is None
    with pytest.raises(FrameFormatError) as exc:
        decode_strict(b"\x80\x80\x80\x80")
    assert exc.value.offset == 0
