""" Bounded FIFO of outbound :class:`notebridge.protocol.Message` instances
    with drop-oldest admission control. Capturing a note must never block
    on a slow or absent receiver, so when the queue is full the oldest
    pending message is evicted to make room; notes lose relevance quickly,
    recent ones are kept.
"""

import collections
import logging
import queue
import threading
import time

from .protocol.message import Message

logger = logging.getLogger(__name__)

default_capacity = 64


class QueueClosed(Exception):
    """ Raised by :func:`DeliveryQueue.dequeue` once the queue has been
        closed and there is nothing left to hand out.
    """


class DeliveryQueue:
    """ Thread-safe bounded queue. :func:`enqueue` and :func:`requeue` never
        block; :func:`dequeue` waits on a condition variable until a message
        is available, the optional timeout expires, or the queue is closed.

        :ivar dropped: Number of messages evicted by the admission policy.
    """

    def __init__(self, capacity=default_capacity):

        capacity = int(capacity)
        if capacity < 1:
            raise ValueError('queue capacity must be at least 1')

        self.capacity = capacity
        self.dropped = 0
        self.closed = False

        self._items = collections.deque()
        self._condition = threading.Condition()


    def __len__(self):
        with self._condition:
            return len(self._items)


    @property
    def depth(self):
        return len(self)


    def snapshot(self):
        """ Return a list of the queued messages, oldest first.
        """

        with self._condition:
            return list(self._items)


    def _admit(self, message):
        """ Insert *message* at the tail, evicting the oldest entry first if
            the queue is full. Must be called with the condition held.
            Returns the evicted message, if any.
        """

        evicted = None

        if len(self._items) >= self.capacity:
            evicted = self._items.popleft()
            self.dropped += 1

        self._items.append(message)
        self._condition.notify()

        return evicted


    def enqueue(self, message):
        """ Add a new *message*; a bare string is wrapped in a
            :class:`Message`. Returns the message that was evicted to make
            room for it, or None.
        """

        if isinstance(message, str):
            message = Message(message)

        with self._condition:
            evicted = self._admit(message)
            depth = len(self._items)

        if evicted is not None:
            logger.warning("Queue full (%d), dropped oldest message: %r",
                    self.capacity, evicted.preview())

        logger.debug("Queued message, depth %d", depth)
        return evicted


    def requeue(self, message):
        """ Put back a *message* that could not be sent. It goes to the tail
            with its attempt counter incremented, and is subject to the same
            eviction as a new message.
        """

        message.attempts += 1

        with self._condition:
            evicted = self._admit(message)

        if evicted is not None:
            logger.warning("Queue full (%d) on retry, dropped oldest message: %r",
                    self.capacity, evicted.preview())

        return evicted


    def dequeue(self, timeout=None):
        """ Remove and return the oldest message. Blocks until one is
            available; raises :class:`queue.Empty` if *timeout* seconds pass
            first, or :class:`QueueClosed` if the queue is closed while
            empty.
        """

        if timeout is not None:
            deadline = time.monotonic() + timeout

        with self._condition:
            while not self._items:
                if self.closed:
                    raise QueueClosed('delivery queue is closed')

                if timeout is None:
                    self._condition.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise queue.Empty()
                    self._condition.wait(remaining)

            return self._items.popleft()


    def close(self):
        """ Wake every waiting :func:`dequeue` call. Queued messages remain
            available until drained; a closed queue still accepts new ones.
        """

        with self._condition:
            self.closed = True
            self._condition.notify_all()


    def reopen(self):
        with self._condition:
            self.closed = False


    def clear(self):
        with self._condition:
            self._items.clear()


# end of class DeliveryQueue


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
