"""
msgp.stream
Incremental reassembly of size-prefixed frames from arbitrarily fragmented input.

Not thread-safe: one feeder/reader per instance, or guard it with a lock.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, List, Optional

from .protocol import INCOMPLETE, FrameFormatError, FramingError, Located, Malformed, find_frame

logger = logging.getLogger(__name__)


class BufferLimitExceeded(FramingError):
    def __init__(self, buffered: int, limit: int):
        super().__init__(f"{buffered} unconsumed bytes would exceed limit of {limit}")
        self.buffered = buffered
        self.limit = limit


class Reassembler:
    """Collects fed bytes and hands out complete payloads in arrival order.

    The internal buffer is only released once every fed byte has been
    consumed. A stream whose chunks rarely end on a frame boundary keeps
    already-delivered bytes around until that happens; ``max_buffered``
    counts only unconsumed bytes and does not bound this.
    """

    def __init__(self, max_buffered: Optional[int] = None):
        self.max_buffered = max_buffered
        self._buf = bytearray()
        self._cursor = 0
        self._pending: Optional[Located] = None
        self._completed: Deque[bytes] = deque()
        self._error: Optional[FrameFormatError] = None

    @property
    def failed(self) -> bool:
        return self._error is not None

    def feed(self, chunk: bytes) -> int:
        """Append ``chunk`` and return how many frames it completed.

        Raises FrameFormatError on a corrupt prefix; the instance must then be
        reset() before it accepts more input.
        """
        if self._error is not None:
            raise self._error
        size = memoryview(chunk).nbytes
        if not size:
            return 0

        if self.max_buffered is not None:
            buffered = self.buffered_byte_count() + size
            if buffered > self.max_buffered:
                raise BufferLimitExceeded(buffered, self.max_buffered)

        self._buf += chunk
        completed = 0
        while True:
            if self._pending is not None:
                start, end = self._pending.start, self._pending.end
                if end > len(self._buf):
                    break
                self._completed.append(bytes(self._buf[start:end]))
                self._cursor = end
                self._pending = None
                completed += 1
                logger.debug(f"feed(): completed frame size={end - start}")
                continue

            if self._cursor == len(self._buf):
                self._buf.clear()
                self._cursor = 0
                break

            res = find_frame(self._buf, self._cursor)
            if res is INCOMPLETE:
                break
            if isinstance(res, Malformed):
                self._error = res.to_error()
                logger.error(f"feed(): corrupt size prefix at offset {res.offset}")
                raise self._error

            logger.debug(f"feed(): located frame start={res.start} end={res.end}")
            self._pending = res

        return completed

    def read(self) -> Optional[bytes]:
        if not self._completed:
            return None
        return self._completed.popleft()

    def drain(self) -> List[bytes]:
        out = list(self._completed)
        self._completed.clear()
        return out

    def __iter__(self) -> Iterator[bytes]:
        while self._completed:
            yield self._completed.popleft()

    def buffered_byte_count(self) -> int:
        """Bytes held that have not yet produced a complete frame."""
        return len(self._buf) - self._cursor

    def pending_result_count(self) -> int:
        return len(self._completed)

    def reset(self) -> None:
        self._buf.clear()
        self._cursor = 0
        self._pending = None
        self._completed.clear()
        self._error = None
