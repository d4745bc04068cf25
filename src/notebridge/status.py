"""Status events flowing from the connection manager to collaborators.

Collaborators in the same process register callbacks on a
:class:`StatusChannel`. Collaborators elsewhere (a UI process, a tray
icon) can receive the same events from a :class:`StatusPublisher`, a
ZeroMQ PUB socket, through a :class:`StatusSubscriber`.

Publish frames:
    topic (``status.``), json_event
"""

from __future__ import annotations

import atexit
import logging
import queue
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional

import zmq

from . import json

logger = logging.getLogger(__name__)

zmq_context = zmq.Context()

TOPIC = b"status."

# Event kinds.
LISTENING = "listening"
CONNECTING = "connecting"
CONNECTED = "connected"
DISCONNECTED = "disconnected"
QUEUED = "queued"
DROPPED = "dropped"
SENT = "sent"
FAILED = "failed"
ABSENT = "absent"
CLIPBOARD_EMPTY = "clipboard_empty"
STOPPED = "stopped"

kinds = frozenset((
    LISTENING, CONNECTING, CONNECTED, DISCONNECTED, QUEUED, DROPPED,
    SENT, FAILED, ABSENT, CLIPBOARD_EMPTY, STOPPED,
))


@dataclass(frozen=True)
class StatusEvent:
    """One status update.

    *chunks* is set for ``sent`` events, *depth* is the queue depth at the
    time of the event.
    """

    kind: str
    connected: bool
    detail: str = ""
    chunks: Optional[int] = None
    depth: Optional[int] = None
    time: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "StatusEvent":
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in d.items() if k in known})


Listener = Callable[[StatusEvent], None]


class StatusChannel:
    """Fan status events out to registered callbacks.

    Callbacks run on the thread that publishes the event, which is one of
    the bridge's worker threads; they should return quickly. A callback
    that raises is logged and does not affect the others.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()
        self.last: Optional[StatusEvent] = None

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register *callback*; return a function that unregisters it."""

        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._listeners.remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    def publish(self, event: StatusEvent) -> None:
        self.last = event

        with self._lock:
            listeners = list(self._listeners)

        for callback in listeners:
            try:
                callback(event)
            except Exception:
                logger.exception("Status listener %r failed on %s event", callback, event.kind)

    def emit(self, kind: str, connected: bool, **kwargs) -> StatusEvent:
        event = StatusEvent(kind=kind, connected=connected, **kwargs)
        self.publish(event)
        return event


def to_frames(event: StatusEvent):
    return (TOPIC, json.dumps(event.to_dict()))


def from_frames(parts) -> StatusEvent:
    if len(parts) < 2 or parts[0] != TOPIC:
        raise ValueError("invalid status message")
    return StatusEvent.from_dict(json.load_object(parts[1], "status message"))


class StatusPublisher:
    """PUB server for status events, bound to *address*.

    Events are handed to a background thread through an internal queue and
    an inproc signal socket, since ZeroMQ sockets must not be shared
    between threads.
    """

    def __init__(self, address: str):
        self.address = address

        self.socket = zmq_context.socket(zmq.PUB)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.bind(address)

        self._queue = queue.SimpleQueue()

        internal = f"inproc://status.Publisher:signal:{id(self)}"
        self._sig_rx = zmq_context.socket(zmq.PAIR)
        self._sig_rx.setsockopt(zmq.LINGER, 0)
        self._sig_rx.bind(internal)
        self._sig_tx = zmq_context.socket(zmq.PAIR)
        self._sig_tx.setsockopt(zmq.LINGER, 0)
        self._sig_tx.connect(internal)
        self._sig_lock = threading.Lock()

        self.closed = False
        self.shutdown = False
        self.thread = threading.Thread(target=self.run, name="notebridge-status", daemon=True)
        self.thread.start()

    def __call__(self, event: StatusEvent) -> None:
        self.send(event)

    def send(self, event: StatusEvent) -> None:
        with self._sig_lock:
            if self.closed:
                return
            self._queue.put(event)
            self._sig_tx.send(b"")

    def _send_one(self) -> None:
        self._sig_rx.recv(flags=zmq.NOBLOCK)
        event = self._queue.get(block=False)
        if event is None:
            self.shutdown = True
            return
        self.socket.send_multipart(to_frames(event))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self._sig_rx, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(1000):
                if active == self._sig_rx:
                    try:
                        self._send_one()
                    except zmq.ZMQError:
                        logger.exception("Failed to publish status event")

        self.socket.close()
        self._sig_rx.close()

    def close(self) -> None:
        # Events queued before the None marker are still published.
        with self._sig_lock:
            if self.closed:
                return
            self.closed = True
            self._queue.put(None)
            self._sig_tx.send(b"")
        self.thread.join(timeout=2)
        with self._sig_lock:
            self._sig_tx.close()


class StatusSubscriber:
    """SUB client for a :class:`StatusPublisher`."""

    def __init__(self, address: str):
        self.address = address
        self.socket = zmq_context.socket(zmq.SUB)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.connect(address)
        self.socket.setsockopt(zmq.SUBSCRIBE, TOPIC)

    def recv(self, timeout: Optional[float] = None) -> Optional[StatusEvent]:
        """Return the next event, or None if *timeout* seconds pass first."""

        if timeout is not None:
            if not self.socket.poll(int(timeout * 1000), zmq.POLLIN):
                return None
        parts = self.socket.recv_multipart()
        return from_frames(parts)

    def close(self) -> None:
        self.socket.close()


def _cleanup() -> None:
    # destroy() closes any sockets still held by daemon threads; term()
    # alone would wait on them forever.
    try:
        zmq_context.destroy(linger=0)
    except zmq.ZMQError:
        pass


atexit.register(_cleanup)
