"""Line grammar for frames.

    SESSION_START|<sid>|CHUNKS=<n>|ENC=<PLAIN|B64>
    CHUNK|<sid>|<i>/<n>|<payload>
    SESSION_END|<sid>
"""

from __future__ import annotations

from typing import Iterable, List

from . import fields
from .message import Chunk, Encoding, Frame, Session, SessionEnd, SessionStart
from .builder import frame


class ProtocolError(ValueError):
    """A line does not follow the frame grammar."""


_SEP = fields.DELIMITER


def render(item: Frame) -> str:
    """Serialize one frame to a line, without the trailing newline."""

    if isinstance(item, SessionStart):
        return _SEP.join((
            fields.SESSION_START,
            item.session_id,
            f"{fields.CHUNKS_PREFIX}{item.total_chunks}",
            f"{fields.ENCODING_PREFIX}{item.encoding.value}",
        ))

    if isinstance(item, Chunk):
        return _SEP.join((
            fields.CHUNK,
            item.session_id,
            f"{item.index}/{item.total_chunks}",
            item.payload,
        ))

    if isinstance(item, SessionEnd):
        return _SEP.join((fields.SESSION_END, item.session_id))

    raise TypeError(f"not a frame: {item!r}")


def lines(session: Session) -> List[str]:
    """Frame *session* and render every frame."""

    return [render(item) for item in frame(session)]


def _integer(text: str, line: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise ProtocolError(f"expected an integer, got {text!r}: {line!r}") from None
    if value < 1:
        raise ProtocolError(f"expected a positive integer, got {value}: {line!r}")
    return value


def _prefixed(text: str, prefix: str, line: str) -> str:
    if not text.startswith(prefix):
        raise ProtocolError(f"expected {prefix!r} field: {line!r}")
    return text[len(prefix):]


def parse(line: str) -> Frame:
    """Parse one line (trailing newline allowed) back into a frame."""

    line = line.rstrip("\r\n")
    kind, _, rest = line.partition(_SEP)

    if kind == fields.SESSION_END:
        if not rest or _SEP in rest:
            raise ProtocolError(f"malformed {kind} frame: {line!r}")
        return SessionEnd(rest)

    if kind == fields.SESSION_START:
        parts = rest.split(_SEP)
        if len(parts) != 3 or not parts[0]:
            raise ProtocolError(f"malformed {kind} frame: {line!r}")

        sid, chunks, encoding = parts
        total = _integer(_prefixed(chunks, fields.CHUNKS_PREFIX, line), line)
        token = _prefixed(encoding, fields.ENCODING_PREFIX, line)
        try:
            mode = Encoding(token)
        except ValueError:
            raise ProtocolError(f"unknown encoding {token!r}: {line!r}") from None
        return SessionStart(sid, total, mode)

    if kind == fields.CHUNK:
        # The payload never contains a literal delimiter, but split no
        # further than the payload field regardless.
        parts = rest.split(_SEP, 2)
        if len(parts) != 3 or not parts[0]:
            raise ProtocolError(f"malformed {kind} frame: {line!r}")

        sid, position, payload = parts
        index, slash, total = position.partition("/")
        if not slash:
            raise ProtocolError(f"malformed chunk position {position!r}: {line!r}")

        index = _integer(index, line)
        total = _integer(total, line)
        if index > total:
            raise ProtocolError(f"chunk {index} of {total}: {line!r}")
        return Chunk(sid, index, total, payload)

    raise ProtocolError(f"unknown frame type {kind!r}: {line!r}")


def parse_all(source: Iterable[str]) -> List[Frame]:
    return [parse(line) for line in source]
