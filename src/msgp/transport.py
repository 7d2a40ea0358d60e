"""
msgp.transport
Send/receive size-prefixed frames over a TCP (or any stream) socket.
"""
from __future__ import annotations

import logging
import socket
from typing import Iterator, Optional

from .protocol import encode
from .stream import Reassembler

logger = logging.getLogger(__name__)


class FramedSocket:
    def __init__(self, sock: socket.socket, recv_size: int = 4096, max_buffered: Optional[int] = None):
        self.sock = sock
        self.recv_size = recv_size
        self.decoder = Reassembler(max_buffered=max_buffered)

    def send_frame(self, payload: bytes) -> None:
        self.sock.sendall(encode(payload))

    def recv_frame(self) -> bytes:
        while True:
            payload = self.decoder.read()
            if payload is not None:
                return payload
            chunk = self.sock.recv(self.recv_size)
            if not chunk:
                partial = self.decoder.buffered_byte_count()
                if partial:
                    logger.warning(f"recv_frame(): connection closed mid-frame, dropped {partial} bytes")
                raise EOFError("connection closed")
            count = self.decoder.feed(chunk)
            logger.debug(f"recv_frame(): read {len(chunk)} bytes, completed={count}")

    def __iter__(self) -> Iterator[bytes]:
        while True:
            try:
                yield self.recv_frame()
            except EOFError:
                return
