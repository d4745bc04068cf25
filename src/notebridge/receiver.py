"""PC-side reader for a bridge.

Connects to the bridge (normally through ``adb forward tcp:12345
tcp:12345``), reads frames in either transport format, and yields each
note once its session is complete. A :class:`Receiver` can also wrap a
socket accepted by the caller, for bridges running in connect mode.
"""

from __future__ import annotations

import logging
import socket
from typing import Iterator, Optional

from .protocol.reassembly import Reassembler
from .protocol.wire import ProtocolError
from .transport import codec, tcp
from .transport.line import read_lines

logger = logging.getLogger(__name__)


class Receiver:
    """Read notes from *sock*.

    *transport* is ``stream`` or ``line`` and *framed* mirrors the
    bridge's ``framed`` setting; both must match the bridge. A stream
    bridge with framing turned off sends each note as a single unit, and
    those units are yielded exactly as received. The line transport is
    always framed.
    """

    def __init__(self, sock: socket.socket, transport: str = "stream",
                 reassembler: Optional[Reassembler] = None, framed: bool = True):
        if transport not in ("stream", "line"):
            raise ValueError(f"unknown transport: {transport!r}")

        self.socket = sock
        self.transport = transport
        self.framed = framed
        self.reassembler = reassembler if reassembler is not None else Reassembler()
        self.malformed = 0

    @classmethod
    def connect(cls, host: str = "127.0.0.1", port: int = tcp.default_listen_port,
                timeout: float = 2.0, **kwargs) -> "Receiver":
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.settimeout(None)
        return cls(sock, **kwargs)

    def __enter__(self) -> "Receiver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[str]:
        return self.notes()

    def _feed(self, line: str) -> Optional[str]:
        try:
            return self.reassembler.feed_line(line)
        except ProtocolError as exc:
            self.malformed += 1
            logger.warning("Skipping malformed frame: %s", exc)
            return None

    def _units(self) -> Iterator[str]:
        if self.transport == "line":
            yield from read_lines(self.socket)
            return

        while True:
            unit = codec.read_unit(self.socket)
            if unit is None:
                return
            yield unit

    def notes(self) -> Iterator[str]:
        """Yield completed notes until the bridge closes the connection."""

        try:
            for unit in self._units():
                if self.transport == "stream" and not self.framed:
                    yield unit
                    continue

                text = self._feed(unit)
                if text is not None:
                    yield text
        finally:
            self.reassembler.reset()

    def close(self) -> None:
        sock = self.socket
        if sock is None:
            return
        self.socket = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
