"""
msgp.protocol
Size-prefixed framing: a 1-4 byte big-endian base-128 length, then the payload.

    frame  := prefix payload
    prefix := byte{1,4}    # bit 7 set on every byte but the last
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

MAX_PAYLOAD_LEN = 268435456  # 2**28, exclusive
MAX_PREFIX_LEN = 4

CONTINUATION = 0x80
LOW7 = 0x7F

# Upper bounds (exclusive) for 1, 2, 3 and 4 prefix bytes.
_PREFIX_LIMITS = (128, 16384, 2097152, MAX_PAYLOAD_LEN)


class FramingError(ValueError):
    pass


class PayloadTooLarge(FramingError):
    def __init__(self, length: int):
        super().__init__(f"payload length {length} exceeds maximum {MAX_PAYLOAD_LEN - 1}")
        self.length = length


class FrameFormatError(FramingError):
    """A size prefix needs more than MAX_PREFIX_LEN bytes: the stream is corrupt."""

    def __init__(self, offset: int, reason: str = "prefix exceeds maximum representable length"):
        super().__init__(f"{reason} (prefix at offset {offset})")
        self.offset = offset
        self.reason = reason


@dataclass(frozen=True)
class Located:
    """Payload occupies buf[start:end]. ``end`` may lie past the data received so far."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


class _Incomplete:
    __slots__ = ()

    def __repr__(self) -> str:
        return "INCOMPLETE"


INCOMPLETE = _Incomplete()


@dataclass(frozen=True)
class Malformed:
    offset: int
    reason: str = "prefix exceeds maximum representable length"

    def to_error(self) -> FrameFormatError:
        return FrameFormatError(self.offset, self.reason)


LookupResult = Union[Located, _Incomplete, Malformed]


def prefix_size(length: int) -> int:
    if length < 0:
        raise ValueError(f"negative length {length}")
    for n, limit in enumerate(_PREFIX_LIMITS, start=1):
        if length < limit:
            return n
    raise PayloadTooLarge(length)


def encode_prefix(length: int) -> bytes:
    n = prefix_size(length)
    out = bytearray(n)
    for i in range(n - 1, -1, -1):
        out[i] = length & LOW7
        length >>= 7
    for i in range(n - 1):
        out[i] |= CONTINUATION
    return bytes(out)


def encode(payload: bytes) -> bytes:
    """Return ``payload`` preceded by its minimal size prefix.

    The length is counted in bytes, so any contiguous buffer works
    (a memoryview over an array("I") declares 4 bytes per item).
    """
    prefix = encode_prefix(memoryview(payload).nbytes)
    return prefix + bytes(payload)


def find_frame(buf: bytes, offset: int = 0) -> LookupResult:
    """Locate the payload whose prefix starts at ``buf[offset]``.

    Nothing is consumed on INCOMPLETE: retry from the same offset once more
    bytes are available.
    """
    continuations = 0
    accumulated = 0
    pos = offset
    size = len(buf)
    while pos < size:
        byte = buf[pos]
        pos += 1
        if byte < CONTINUATION:
            return Located(pos, pos + accumulated + byte)
        continuations += 1
        if continuations >= MAX_PREFIX_LEN:
            return Malformed(offset)
        accumulated = (accumulated + (byte & LOW7)) * 128
    return INCOMPLETE


def decode(buf: bytes) -> Optional[bytes]:
    """Decode the single frame at the start of ``buf``, or None."""
    res = find_frame(buf)
    if not isinstance(res, Located) or res.end > len(buf):
        return None
    return bytes(buf[res.start:res.end])


def decode_strict(buf: bytes) -> Optional[bytes]:
    """Like decode(), but a corrupt prefix raises FrameFormatError instead of returning None."""
    res = find_frame(buf)
    if isinstance(res, Malformed):
        raise res.to_error()
    if res is INCOMPLETE or res.end > len(buf):
        return None
    return bytes(buf[res.start:res.end])
