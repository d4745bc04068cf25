"""Plain line adapter: one frame per newline-terminated UTF-8 line."""

from __future__ import annotations

import socket
from typing import List

from ..protocol import builder
from ..protocol import wire
from ..protocol.message import Frame, Session
from .base import Transport


class LineTransport(Transport):

    name = "line"

    def __init__(self, sock: socket.socket, framed: bool = True):
        # Lines are always framed; the flag is accepted so both adapters
        # can be built the same way.
        super().__init__(sock)

    def write_frame(self, frame: Frame) -> None:
        self._send((wire.render(frame) + "\n").encode("utf-8"))

    def write_session(self, session: Session) -> int:
        # One sendall per session keeps small sessions to a single segment.
        rendered: List[str] = [wire.render(frame) for frame in builder.frame(session)]
        self._send(("\n".join(rendered) + "\n").encode("utf-8"))
        return session.total_chunks


def read_lines(sock: socket.socket):
    """Yield decoded lines from *sock* until the peer closes it."""

    reader = sock.makefile("r", encoding="utf-8", newline="\n")
    try:
        for line in reader:
            yield line.rstrip("\n")
    finally:
        reader.close()
