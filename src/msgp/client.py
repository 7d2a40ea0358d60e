"""
msgp.client
Demo client: sends each message as a frame and prints the echo.
"""
from __future__ import annotations

import argparse
import logging
import socket
from typing import List

from .transport import FramedSocket

logger = logging.getLogger(__name__)


def exchange(sock: socket.socket, messages: List[bytes]) -> List[bytes]:
    fs = FramedSocket(sock)
    replies = []
    for msg in messages:
        fs.send_frame(msg)
        replies.append(fs.recv_frame())
    return replies


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=9000)
    ap.add_argument("--message", action="append", help="may be given more than once")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="[client] %(levelname)s %(name)s: %(message)s")
    messages = [m.encode("utf-8") for m in (args.message or ["hello"])]

    with socket.create_connection((args.host, args.port)) as sock:
        for echoed in exchange(sock, messages):
            print(f"[client] recv: {echoed.decode('utf-8', errors='replace')}")


if __name__ == "__main__":
    main()
