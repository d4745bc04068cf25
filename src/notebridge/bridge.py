""" The :class:`Bridge` ties the pieces together for a capture point: a
    delivery queue, an endpoint, a transport adapter, and the connection
    manager that moves queued notes to the receiver. Collaborators hand it
    text with :func:`Bridge.submit` or a clipboard reader with
    :func:`Bridge.capture`, and watch progress through :func:`subscribe`.
"""

import logging

from . import config
from . import status
from .connection import ConnectionManager
from .delivery import DeliveryQueue
from .protocol.encoder import Encoder
from .protocol.message import Message
from . import transport

logger = logging.getLogger(__name__)


class Bridge:
    """ Build everything from a :class:`notebridge.config.Settings`
        instance; with no *settings* the configuration is loaded with
        :func:`notebridge.config.load`. An *endpoint* may be supplied to
        override the one described by the settings.
    """

    def __init__(self, settings=None, endpoint=None):

        if settings is None:
            settings = config.load()

        self.settings = settings
        self.status = status.StatusChannel()
        self.queue = DeliveryQueue(settings.queue_capacity)
        self.encoder = Encoder(settings.plain_chunk_size, settings.base64_chunk_size)

        if endpoint is None:
            endpoint = self._endpoint(settings)

        self.endpoint = endpoint

        self.manager = ConnectionManager(endpoint, self.queue,
                transport=transport.adapter(settings.transport),
                encoder=self.encoder,
                status_channel=self.status,
                reconnect_delay=settings.reconnect_delay,
                retry_delay=settings.retry_delay,
                framed=settings.framed)

        self.publisher = None
        self._unpublish = None


    @staticmethod
    def _endpoint(settings):

        if settings.mode == 'connect':
            return transport.Connector(settings.connect_host, settings.connect_port,
                    timeout=settings.connect_timeout)

        return transport.Listener(settings.listen_address, settings.listen_port)


    def __enter__(self):
        self.start()
        return self


    def __exit__(self, *exc_info):
        self.stop()


    # --- lifecycle ---

    def start(self):

        if self.settings.status_address and self.publisher is None:
            self.publisher = status.StatusPublisher(self.settings.status_address)
            self._unpublish = self.status.subscribe(self.publisher)

        logger.info("Starting bridge: %s transport, %s", self.settings.transport,
                self.endpoint.describe())
        self.manager.start()


    def stop(self):

        self.manager.stop()

        if self.publisher is not None:
            self._unpublish()
            self.publisher.close()
            self.publisher = None


    # --- collaborator entry points ---

    def submit(self, text):
        """ Queue *text* for delivery and return its
            :class:`notebridge.protocol.Message`. Never blocks; if the queue
            is full the oldest pending note is dropped.
        """

        message = Message(text)
        evicted = self.queue.enqueue(message)

        if evicted is not None:
            self.status.emit(status.DROPPED, self.connected,
                    detail=evicted.preview(), depth=self.queue.depth)

        self.status.emit(status.QUEUED, self.connected,
                detail=message.preview(), depth=self.queue.depth)
        return message


    def capture(self, read_clipboard):
        """ Call *read_clipboard*, which returns the clipboard text, returns
            None, or raises; submit any non-empty text. Returns the queued
            message, or None if there was nothing to send.
        """

        try:
            text = read_clipboard()
        except Exception as exc:
            logger.warning("Clipboard read failed: %s", exc)
            self.status.emit(status.CLIPBOARD_EMPTY, self.connected, detail=str(exc))
            return None

        if text is None or text.strip() == '':
            self.status.emit(status.CLIPBOARD_EMPTY, self.connected, detail='clipboard is empty')
            return None

        return self.submit(text)


    def subscribe(self, callback):
        """ Register *callback* for every :class:`notebridge.status.StatusEvent`.
            Returns a function that unregisters it.
        """

        return self.status.subscribe(callback)


    # --- state ---

    @property
    def connected(self):
        return self.manager.connected


    @property
    def state(self):
        return self.manager.state


    @property
    def depth(self):
        return self.queue.depth


    @property
    def dropped(self):
        return self.queue.dropped


# end of class Bridge


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
