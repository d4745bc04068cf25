"""Session framing: turn a :class:`Session` into its ordered frames."""

from __future__ import annotations

from typing import List

from .message import Chunk, Frame, Session, SessionEnd, SessionStart


def frame(session: Session) -> List[Frame]:
    """Return START, one CHUNK per chunk (1-based), then END."""

    total = session.total_chunks
    sid = session.session_id

    frames: List[Frame] = [SessionStart(sid, total, session.encoding)]
    for index, payload in enumerate(session.chunks, start=1):
        frames.append(Chunk(sid, index, total, payload))
    frames.append(SessionEnd(sid))

    return frames
