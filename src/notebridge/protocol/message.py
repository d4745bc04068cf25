""" Data structures for the note transfer protocol: the :class:`Message`
    handed to the delivery queue, the :class:`Session` produced for each
    transmission attempt, and the three frame types that carry a session
    on the wire.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Tuple, Union


class Encoding(enum.Enum):
    """ Payload encoding of a session. The value is the wire token used in
        the ``ENC=`` field of a SESSION_START frame.
    """

    PLAIN = "PLAIN"
    BASE64 = "B64"


@dataclass
class Message:
    """ A unit of user intent to transmit. The *attempts* counter is bumped
        every time the message is put back on the queue after a failed or
        impossible send.
    """

    text: str
    enqueued_at: float = field(default_factory=time.time)
    attempts: int = 0

    def preview(self, length: int = 40) -> str:
        if len(self.text) <= length:
            return self.text
        return self.text[:length] + "…"


@dataclass(frozen=True)
class Session:
    """ One transmission attempt of one :class:`Message`. Sessions are not
        resumable; a retried message is encoded into a new session with a
        new identifier.
    """

    session_id: str
    chunks: Tuple[str, ...]
    encoding: Encoding

    def __post_init__(self):
        if len(self.chunks) < 1:
            raise ValueError("a session carries at least one chunk")

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)


@dataclass(frozen=True)
class SessionStart:
    session_id: str
    total_chunks: int
    encoding: Encoding


@dataclass(frozen=True)
class Chunk:
    session_id: str
    index: int
    total_chunks: int
    payload: str


@dataclass(frozen=True)
class SessionEnd:
    session_id: str


Frame = Union[SessionStart, Chunk, SessionEnd]

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
