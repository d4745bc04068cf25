"""Length-prefixed binary stream adapter."""

from __future__ import annotations

import socket

from ..protocol import encoder
from ..protocol import wire
from ..protocol.message import Frame, Session
from .base import Transport
from .codec import pack_unit


class StreamTransport(Transport):
    """Write length-prefixed UTF-8 units to a connected socket.

    Framed (the default), each frame line becomes one unit. Unframed, the
    session is flattened back to its decoded text and sent as a single
    unit, which is what receivers without a frame parser expect.
    """

    name = "stream"

    def __init__(self, sock: socket.socket, framed: bool = True):
        super().__init__(sock)
        self.framed = framed

    def write_frame(self, frame: Frame) -> None:
        self._send(pack_unit(wire.render(frame)))

    def write_session(self, session: Session) -> int:
        if self.framed:
            return super().write_session(session)

        self._send(pack_unit(encoder.decode(session)))
        return session.total_chunks
