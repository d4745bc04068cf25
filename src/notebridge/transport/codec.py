"""Length-prefixed stream codec: 4-byte big-endian length, then UTF-8."""

from __future__ import annotations

import socket
import struct
from typing import Optional

from .base import PeerClosed, TransportError


_HEADER = struct.Struct(">I")

# Refuse absurd lengths rather than attempt to buffer them.
maximum_unit = 16 * 1024 * 1024


def pack_unit(text: str) -> bytes:
    payload = text.encode("utf-8")
    return _HEADER.pack(len(payload)) + payload


def _recv_exact(sock: socket.socket, size: int, allow_eof: bool = False) -> Optional[bytes]:
    pieces = []
    remaining = size

    while remaining:
        piece = sock.recv(remaining)
        if not piece:
            if allow_eof and remaining == size:
                return None
            raise PeerClosed(f"connection closed with {remaining} of {size} bytes outstanding")
        pieces.append(piece)
        remaining -= len(piece)

    return b"".join(pieces)


def read_unit(sock: socket.socket) -> Optional[str]:
    """Read one unit from *sock*. Returns None on a clean end of stream."""

    header = _recv_exact(sock, _HEADER.size, allow_eof=True)
    if header is None:
        return None

    (length,) = _HEADER.unpack(header)
    if length > maximum_unit:
        raise TransportError(f"unit of {length} bytes exceeds the {maximum_unit} byte limit")

    if length == 0:
        return ""

    payload = _recv_exact(sock, length)
    return payload.decode("utf-8")
