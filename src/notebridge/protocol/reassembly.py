""" Receiver-side reassembly of frames into note text.

    A session is delivered only when its SESSION_END arrives and every chunk
    has been seen. Sessions that never reach their end (the sender gave up
    mid-write and will resend under a new session id) are discarded.
    Completed session ids are remembered so a replayed session is delivered
    at most once.
"""

import collections
import logging

from . import encoder
from .message import Chunk, SessionEnd, SessionStart
from . import wire

logger = logging.getLogger(__name__)


class _Pending:

    def __init__(self, start):
        self.session_id = start.session_id
        self.total = start.total_chunks
        self.encoding = start.encoding
        self.chunks = dict()


    def complete(self):
        return len(self.chunks) == self.total


    def text(self):
        payload = ''.join(self.chunks[index] for index in range(1, self.total + 1))
        return encoder.decode_payload(payload, self.encoding)


class Reassembler:
    """ Feed frames in arrival order via :func:`feed`; a completed note is
        returned by the call that consumes its SESSION_END frame, every
        other call returns None.

        Only one session can be open at a time, matching the sender which
        never interleaves sessions on one connection. *remember* caps the
        number of completed session ids retained for duplicate detection.
    """

    def __init__(self, remember=256):
        self.pending = None
        self.completed = collections.OrderedDict()
        self.remember = int(remember)
        self.abandoned = 0
        self.duplicates = 0


    def feed(self, frame):

        if isinstance(frame, SessionStart):
            return self._start(frame)

        if isinstance(frame, Chunk):
            return self._chunk(frame)

        if isinstance(frame, SessionEnd):
            return self._end(frame)

        raise TypeError('not a frame: ' + repr(frame))


    def feed_line(self, line):
        """ Parse *line* and feed the resulting frame. Malformed lines raise
            :class:`wire.ProtocolError` and leave the state untouched. A
            SESSION_END whose payload does not decode also raises
            :class:`wire.ProtocolError`, after abandoning that session.
        """

        return self.feed(wire.parse(line))


    def reset(self):
        """ Drop any partially received session, for example when the
            underlying connection is lost.
        """

        if self.pending is not None:
            self._abandon('connection reset')


    def _abandon(self, reason):
        logger.warning("Abandoning session %s (%d/%d chunks): %s",
                self.pending.session_id, len(self.pending.chunks),
                self.pending.total, reason)
        self.pending = None
        self.abandoned += 1


    def _start(self, frame):

        if self.pending is not None:
            self._abandon('new session ' + frame.session_id + ' started')

        if frame.session_id in self.completed:
            # Replay of something already delivered. Track it anyway so
            # its chunks are consumed quietly.
            self.duplicates += 1

        self.pending = _Pending(frame)
        return None


    def _chunk(self, frame):

        pending = self.pending

        if pending is None or pending.session_id != frame.session_id:
            logger.debug("Ignoring chunk for unknown session %s", frame.session_id)
            return None

        if frame.total_chunks != pending.total:
            self._abandon('chunk count changed mid-session')
            return None

        # Duplicate chunks are harmless; the first copy wins.
        pending.chunks.setdefault(frame.index, frame.payload)
        return None


    def _end(self, frame):

        pending = self.pending

        if pending is None or pending.session_id != frame.session_id:
            logger.debug("Ignoring end of unknown session %s", frame.session_id)
            return None

        if pending.complete() == False:
            self._abandon('ended before all chunks arrived')
            return None

        if pending.session_id in self.completed:
            self.pending = None
            return None

        # binascii.Error and UnicodeError are both ValueError subclasses.
        # A session that cannot be decoded is never recorded as completed.

        try:
            text = pending.text()
        except ValueError as exc:
            self._abandon('undecodable payload')
            raise wire.ProtocolError('cannot decode session ' + pending.session_id + ': ' + str(exc)) from exc

        self.pending = None

        self.completed[pending.session_id] = True
        while len(self.completed) > self.remember:
            self.completed.popitem(last=False)

        return text


# end of class Reassembler


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
