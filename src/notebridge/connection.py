""" Connection management: one background thread keeps a receiver connection
    established (listening or connecting, then blocking on a liveness read
    until the connection ends), another drains the :class:`DeliveryQueue`
    and writes each message as a fresh session to whatever connection is
    current at the time.

    Nothing here is fatal. A missing receiver, a failed write, or a peer
    that hangs up all end with the message back on the queue and the
    threads carrying on.
"""

import enum
import logging
import socket
import threading

from . import status
from .delivery import QueueClosed
from .protocol.encoder import Encoder
from .transport import StreamTransport, TransportError

logger = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = 'idle'
    LISTENING = 'listening'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    FAILED = 'failed'
    PEER_CLOSED = 'peer closed'
    STOPPED = 'stopped'


class Connection:
    """ The live receiver: a transport adapter wrapping a connected socket,
        plus the peer address. :func:`fail` is called from the sender thread
        and only shuts the socket down; the thread blocked in the liveness
        read notices, and is the one that closes it.
    """

    def __init__(self, sock, transport, peer):
        self.socket = sock
        self.transport = transport
        self.peer = peer
        self.failed = False


    def __repr__(self):
        return 'Connection(%s)' % (self.describe())


    def describe(self):
        peer = self.peer
        if isinstance(peer, tuple) and len(peer) >= 2:
            return '%s:%s' % (peer[0], peer[1])
        return str(peer)


    def fail(self):
        self.failed = True
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass


    def close(self):
        self.transport.close()


# end of class Connection



class ConnectionManager:
    """ Own the receiver connection and the two worker threads.

        *endpoint* is a :class:`notebridge.transport.Listener` or
        :class:`notebridge.transport.Connector`; *queue* is the
        :class:`notebridge.delivery.DeliveryQueue` to drain; *transport* is
        the adapter class wrapped around each new connection. Status events
        go to the *status* channel.

        *reconnect_delay* is the pause after a connection ends (or fails to
        establish) before trying again; *retry_delay* is how long the sender
        waits after finding no receiver. Both waits end early on
        :func:`stop`, and the sender's also ends early when a receiver
        connects.
    """

    def __init__(self, endpoint, queue, transport=StreamTransport, encoder=None,
                 status_channel=None, reconnect_delay=1.0, retry_delay=2.0, framed=True):

        self.endpoint = endpoint
        self.queue = queue
        self.transport = transport
        self.encoder = encoder if encoder is not None else Encoder()
        self.status = status_channel if status_channel is not None else status.StatusChannel()
        self.reconnect_delay = reconnect_delay
        self.retry_delay = retry_delay
        self.framed = framed

        self.running = threading.Event()
        self.stopping = threading.Event()
        self.available = threading.Event()

        self.sent = 0
        self.failures = 0

        self._lock = threading.Lock()
        self._connection = None
        self._state = State.IDLE

        self.accept_thread = None
        self.send_thread = None


    # --- accessors ---

    @property
    def connection(self):
        """ The currently established :class:`Connection`, or None.
        """

        with self._lock:
            return self._connection


    @property
    def connected(self):
        return self.connection is not None


    @property
    def state(self):
        with self._lock:
            return self._state


    def _set_state(self, state):
        with self._lock:
            previous = self._state
            self._state = state

        if previous != state:
            logger.info("Connection state %s -> %s", previous.value, state.value)


    def _emit(self, kind, **kwargs):
        kwargs.setdefault('depth', self.queue.depth)
        return self.status.emit(kind, self.connected, **kwargs)


    # --- lifecycle ---

    def start(self):
        """ Start the accept/connect and sender threads.
        """

        if self.running.is_set():
            return

        self.stopping.clear()
        self.available.clear()
        self.queue.reopen()

        # Bind now so a listening port is known when start() returns. A
        # failure here is retried by the accept thread like any other.

        try:
            self.endpoint.open()
        except TransportError as exc:
            logger.warning("Endpoint not ready: %s", exc)

        self.running.set()

        self.accept_thread = threading.Thread(target=self._accept_loop, name='notebridge-accept')
        self.accept_thread.daemon = True
        self.accept_thread.start()

        self.send_thread = threading.Thread(target=self._send_loop, name='notebridge-sender')
        self.send_thread.daemon = True
        self.send_thread.start()


    def stop(self, timeout=5):
        """ Stop both threads and close the endpoint and any live
            connection. Queued messages stay in the queue.
        """

        if self.running.is_set() == False:
            return

        # stopping and available change together under the lock; see
        # _wait_for_receiver().

        self.running.clear()
        with self._lock:
            self.stopping.set()
            self.available.set()

        self.endpoint.close()
        self.queue.close()

        connection = self._remove()
        if connection is not None:
            connection.close()

        for thread in (self.accept_thread, self.send_thread):
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout)

        self._set_state(State.STOPPED)
        self._emit(status.STOPPED)


    def _pause(self, delay):
        """ Wait *delay* seconds, or less if :func:`stop` is called.
        """

        self.stopping.wait(delay)


    # --- connection slot ---

    def _install(self, connection):
        with self._lock:
            self._connection = connection
        self._set_state(State.CONNECTED)
        self.available.set()


    def _remove(self, connection=None):
        """ Empty the connection slot. If *connection* is given the slot is
            only emptied if it still holds that connection. Returns what was
            removed, if anything.
        """

        with self._lock:
            current = self._connection
            if current is None:
                return None
            if connection is not None and current is not connection:
                return None
            self._connection = None
            return current


    # --- accept/connect thread ---

    def _accept_loop(self):

        if self.endpoint.mode == 'listen':
            waiting = State.LISTENING
            kind = status.LISTENING
        else:
            waiting = State.CONNECTING
            kind = status.CONNECTING

        while self.running.is_set():
            self._set_state(waiting)
            self._emit(kind, detail=self.endpoint.describe())

            try:
                established = self.endpoint.establish(self.running)
            except (TransportError, OSError) as exc:
                logger.warning("No receiver: %s", exc)
                self._emit(status.ABSENT, detail=str(exc))
                self._pause(self.reconnect_delay)
                continue

            if established is None:
                break

            sock, peer = established
            transport = self.transport(sock, framed=self.framed)
            connection = Connection(sock, transport, peer)

            if self.running.is_set() == False:
                connection.close()
                break

            self._install(connection)
            logger.info("Receiver connected: %s", connection.describe())
            self._emit(status.CONNECTED, detail=connection.describe())

            ending = self._watch(connection)

            self._remove(connection)
            connection.close()

            if self.running.is_set() == False:
                break

            self._set_state(ending)
            logger.info("Receiver %s disconnected (%s)", connection.describe(), ending.value)
            self._emit(status.DISCONNECTED, detail=ending.value)
            self._pause(self.reconnect_delay)

        self.endpoint.close()


    def _watch(self, connection):
        """ Liveness read: block reading from the receiver, which never sends
            anything meaningful, until the stream ends. Returns the state
            describing why it ended.
        """

        sock = connection.socket

        while self.running.is_set():
            try:
                data = sock.recv(64)
            except OSError as exc:
                logger.debug("Liveness read on %s failed: %s", connection.describe(), exc)
                return State.FAILED

            if not data:
                if connection.failed:
                    return State.FAILED
                return State.PEER_CLOSED

        return State.STOPPED


    # --- sender thread ---

    def _wait_for_receiver(self, timeout):
        with self._lock:
            if self._connection is not None or self.stopping.is_set():
                return
            self.available.clear()

        self.available.wait(timeout)


    def _send_loop(self):

        while self.running.is_set():
            try:
                message = self.queue.dequeue()
            except QueueClosed:
                break

            if self.running.is_set() == False:
                self._requeue(message)
                break

            if self.send(message) == False and self.connection is None:
                self._wait_for_receiver(self.retry_delay)


    def _requeue(self, message):
        """ Put *message* back on the queue, reporting any message evicted
            to make room for it.
        """

        evicted = self.queue.requeue(message)

        if evicted is not None:
            self._emit(status.DROPPED, detail=evicted.preview())

        return evicted


    def send(self, message):
        """ Encode *message* as a new session and write it to the current
            connection. On any failure the message goes back on the queue.
            Returns True if every frame was written.
        """

        connection = self.connection

        if connection is None:
            self._requeue(message)
            logger.debug("No receiver, message requeued (attempt %d)", message.attempts)
            self._emit(status.ABSENT, detail='not connected, message queued')
            return False

        session = self.encoder.encode(message.text)

        try:
            chunks = connection.transport.write_session(session)
        except (TransportError, OSError) as exc:
            self.failures += 1
            logger.warning("Send of session %s to %s failed: %s",
                    session.session_id, connection.describe(), exc)

            self._remove(connection)
            connection.fail()
            self._requeue(message)
            self._emit(status.FAILED, detail=str(exc))
            return False

        self.sent += 1
        logger.debug("Sent session %s, %d chunk(s), to %s",
                session.session_id, chunks, connection.describe())
        self._emit(status.SENT, detail=message.preview(50), chunks=chunks)
        return True


# end of class ConnectionManager


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
