""" TCP endpoints. A :class:`Listener` waits for the receiver to connect to
    us (the receiver typically reaches the port through ``adb forward``); a
    :class:`Connector` dials out to a receiver listening on a fixed
    address. Either way the result of :func:`establish` is a connected
    socket plus the peer address, or None if the endpoint was asked to stop.
"""

import logging
import socket
import threading

from .base import TransportConnectionError, TransportPortError

logger = logging.getLogger(__name__)


default_listen_port = 12345
default_connect_host = '127.0.0.1'
default_connect_port = 38300


class Listener:
    """ Accept a single receiver at a time on *address*:*port*. A *port* of
        zero binds an ephemeral port; the chosen port is available as
        :attr:`port` after :func:`open`.

        The blocking accept is bounded by *accept_timeout* so that a stop
        request is noticed even on platforms where closing the listening
        socket from another thread does not interrupt the accept.
    """

    mode = 'listen'

    def __init__(self, address='0.0.0.0', port=default_listen_port, accept_timeout=1.0):
        self.address = address
        self.port = int(port)
        self.accept_timeout = accept_timeout
        self.socket = None
        self.lock = threading.Lock()


    def __repr__(self):
        return 'Listener(%s:%d)' % (self.address, self.port)


    def describe(self):
        return 'listening on port %d' % (self.port)


    def open(self):

        with self.lock:
            if self.socket is not None:
                return

            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            try:
                sock.bind((self.address, self.port))
                sock.listen(1)
            except OSError as exc:
                sock.close()
                raise TransportPortError('cannot listen on %s:%d: %s' % (self.address, self.port, exc)) from exc

            sock.settimeout(self.accept_timeout)
            self.port = sock.getsockname()[1]
            self.socket = sock

        logger.info("Listening on %s:%d", self.address, self.port)


    def establish(self, running):
        """ Block until a receiver connects, or until the *running* event is
            cleared.
        """

        if running.is_set() == False:
            return None

        self.open()

        while running.is_set():
            sock = self.socket
            if sock is None:
                return None

            try:
                client, peer = sock.accept()
            except socket.timeout:
                continue
            except OSError:
                if running.is_set():
                    raise
                return None

            client.settimeout(None)
            client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            return client, peer

        return None


    def close(self):

        with self.lock:
            sock = self.socket
            self.socket = None

        if sock is None:
            return

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()


# end of class Listener



class Connector:
    """ Connect to a receiver listening on *host*:*port*, giving up after
        *timeout* seconds per attempt.
    """

    mode = 'connect'

    def __init__(self, host=default_connect_host, port=default_connect_port, timeout=2.0):
        self.host = host
        self.port = int(port)
        self.timeout = timeout


    def __repr__(self):
        return 'Connector(%s:%d)' % (self.host, self.port)


    def describe(self):
        return 'connecting to %s:%d' % (self.host, self.port)


    def open(self):
        pass


    def establish(self, running):

        if running.is_set() == False:
            return None

        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as exc:
            raise TransportConnectionError('cannot connect to %s:%d: %s' % (self.host, self.port, exc)) from exc

        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return sock, sock.getpeername()


    def close(self):
        pass


# end of class Connector


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
