"""Transport interface.

This is the (small) contract that transport adapters should follow. It
lives outside :mod:`notebridge.protocol` so the protocol remains
transport-agnostic.
"""

from __future__ import annotations

import socket
from abc import ABC, abstractmethod
from typing import Optional

from ..protocol.message import Frame, Session
from ..protocol import builder


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A connect or read did not complete in time."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportPortError(TransportError):
    """No suitable port could be bound or connected."""


class ReceiverAbsent(TransportConnectionError):
    """There is no established receiver to write to."""


class TransmissionFailed(TransportConnectionError):
    """A write to the receiver failed; the session is incomplete."""


class PeerClosed(TransportConnectionError):
    """The receiver closed its end of the connection."""


class Transport(ABC):
    """Minimal contract for a wire-level transport adapter.

    An adapter wraps one established connection. Only the sender thread
    writes to it, so implementations need no locking on the write path.
    """

    def __init__(self, sock: socket.socket):
        self.socket: Optional[socket.socket] = sock

    @abstractmethod
    def write_frame(self, frame: Frame) -> None:
        """Send one frame."""

    def write_session(self, session: Session) -> int:
        """Send every frame of *session* in order; return the chunk count."""

        for frame in builder.frame(session):
            self.write_frame(frame)
        return session.total_chunks

    def _send(self, data: bytes) -> None:
        sock = self.socket
        if sock is None:
            raise ReceiverAbsent("transport is closed")

        try:
            sock.sendall(data)
        except OSError as exc:
            raise TransmissionFailed(f"write failed: {exc}") from exc

    def close(self) -> None:
        sock = self.socket
        self.socket = None
        if sock is None:
            return

        # shutdown() wakes any thread blocked reading this socket, which
        # close() alone does not reliably do.
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    @property
    def is_open(self) -> bool:
        """Whether the transport still holds its connection."""
        return self.socket is not None
