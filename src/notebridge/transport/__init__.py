"""Transport layer implementations."""

from .base import (
    Transport,
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    TransportPortError,
    ReceiverAbsent,
    TransmissionFailed,
    PeerClosed,
)

from .stream import StreamTransport
from .line import LineTransport
from .tcp import Connector, Listener

adapters = {
    StreamTransport.name: StreamTransport,
    LineTransport.name: LineTransport,
}


def adapter(name="stream"):
    """Return the transport adapter class registered under *name*."""

    try:
        return adapters[name]
    except KeyError:
        raise ValueError(f"unknown transport adapter: {name!r}") from None
