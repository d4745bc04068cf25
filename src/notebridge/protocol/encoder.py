"""Encoding and chunking of note text into a :class:`Session`.

ASCII-printable text travels as PLAIN with the frame delimiter escaped;
anything else is base64 encoded from its UTF-8 bytes. Either way the
result is cut into fixed-size chunks, and there is no failure path: every
string has a representation.
"""

from __future__ import annotations

import base64
import threading
import time
from typing import Callable, List, Optional, Tuple

from . import fields
from . import shorthand
from .message import Encoding, Session


_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def base36(number: int) -> str:
    """Render a non-negative integer in uppercase base 36."""

    if number < 0:
        raise ValueError("base36() requires a non-negative integer")

    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_DIGITS[remainder])

    return "".join(reversed(digits))


class SessionIds:
    """Issue session identifiers from the wall clock in milliseconds.

    Two requests landing in the same millisecond would collide, so the
    counter never goes backwards: a request that would repeat (or precede)
    the last issued value gets the last value plus one instead.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._last = -1
        self._lock = threading.Lock()

    def __call__(self) -> str:
        return self.next()

    def next(self) -> str:
        now = int(self.clock() * 1000)
        with self._lock:
            if now <= self._last:
                now = self._last + 1
            self._last = now
        return base36(now)


session_id = SessionIds()


def is_ascii_safe(text: str) -> bool:
    """True if every code point is printable ASCII (32 through 126)."""

    for character in text:
        code = ord(character)
        if code < fields.ASCII_SAFE_MIN or code > fields.ASCII_SAFE_MAX:
            return False
    return True


def escape(text: str) -> str:
    return text.replace(fields.DELIMITER, fields.DELIMITER_ESCAPE)


def unescape(text: str) -> str:
    return text.replace(fields.DELIMITER_ESCAPE, fields.DELIMITER)


def chunk(text: str, size: int) -> List[str]:
    """Slice *text* into pieces of at most *size* code units.

    The empty string still produces one (empty) chunk.
    """

    if size < 1:
        raise ValueError(f"chunk size must be positive, not {size!r}")

    chunks = [text[i:i + size] for i in range(0, len(text), size)]
    return chunks or [""]


class Encoder:
    """Turn note text into a :class:`Session`.

    The *normalizer* is applied before anything else; pass ``None`` to send
    text exactly as given.
    """

    def __init__(self,
                 plain_chunk_size: int = fields.PLAIN_CHUNK_SIZE,
                 base64_chunk_size: int = fields.BASE64_CHUNK_SIZE,
                 normalizer: Optional[Callable[[str], str]] = shorthand.normalize,
                 ids: Callable[[], str] = session_id):

        if plain_chunk_size < 1 or base64_chunk_size < 1:
            raise ValueError("chunk sizes must be positive")

        self.plain_chunk_size = int(plain_chunk_size)
        self.base64_chunk_size = int(base64_chunk_size)
        self.normalizer = normalizer
        self.ids = ids

    def prepare(self, text: str) -> Tuple[Encoding, str]:
        """Return the encoding and the exact string that will be chunked
        for *text*.
        """

        if self.normalizer is not None:
            text = self.normalizer(text)

        if is_ascii_safe(text):
            return Encoding.PLAIN, escape(text)

        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        return Encoding.BASE64, encoded

    def encode(self, text: str) -> Session:
        encoding, payload = self.prepare(text)

        if encoding is Encoding.PLAIN:
            size = self.plain_chunk_size
        else:
            size = self.base64_chunk_size

        chunks = tuple(chunk(payload, size))
        return Session(session_id=self.ids(), chunks=chunks, encoding=encoding)


def decode_payload(payload: str, encoding: Encoding) -> str:
    """Reverse the encoding step for a fully concatenated payload."""

    if encoding is Encoding.PLAIN:
        return unescape(payload)

    raw = base64.b64decode(payload.encode("ascii"), validate=True)
    return raw.decode("utf-8")


def decode(session: Session) -> str:
    """Reassemble the normalized text carried by *session*."""

    return decode_payload("".join(session.chunks), session.encoding)


default = Encoder()


def encode(text: str) -> Session:
    """Encode *text* with the default shorthand table and chunk sizes."""

    return default.encode(text)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
