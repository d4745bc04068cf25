"""
Note Transfer Protocol
======================

Transport-agnostic description of how a note travels on the wire. Nothing
in this package knows about sockets.

    Shorthand (shorthand.py)
        Case-insensitive, longest-first clinical abbreviations.

    Encoder (encoder.py)
        PLAIN or base64 encoding, delimiter escaping, fixed-size chunks,
        session identifiers.

    Framer (builder.py)
        Session -> START, CHUNK x N, END.

    Wire grammar (wire.py)
        Frame <-> one '|' separated line.

    Reassembly (reassembly.py)
        Frames -> note text on the receiving side.
"""

from . import fields
from . import message
from . import shorthand
from . import encoder
from . import builder
from . import wire
from . import reassembly

from .message import Chunk, Encoding, Frame, Message, Session, SessionEnd, SessionStart
from .shorthand import normalize
from .encoder import decode, encode
from .builder import frame
from .wire import ProtocolError, parse, render
from .reassembly import Reassembler


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
