"""
msgp.server
Demo server: accepts a single connection and echoes every frame back.
"""
from __future__ import annotations

import argparse
import logging
import socket

from .transport import FramedSocket

logger = logging.getLogger(__name__)


def serve(srv: socket.socket) -> int:
    """Serve one connection from the listening socket; return the number of frames echoed."""
    conn, addr = srv.accept()
    logger.info(f"accepted from {addr}")
    echoed = 0
    with conn:
        fs = FramedSocket(conn)
        for payload in fs:
            logger.debug(f"recv: {len(payload)} bytes")
            fs.send_frame(payload)
            echoed += 1
    logger.info(f"connection from {addr} closed after {echoed} frames")
    return echoed


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=9000)
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="[server] %(levelname)s %(name)s: %(message)s")

    with socket.create_server((args.host, args.port), reuse_port=False) as srv:
        logger.info(f"listening on {args.host}:{args.port}")
        serve(srv)


if __name__ == "__main__":
    main()
