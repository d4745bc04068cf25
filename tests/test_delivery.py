import queue
import threading
import time

import pytest

import notebridge
from notebridge.delivery import DeliveryQueue, QueueClosed
from notebridge.protocol.message import Message


def texts(delivery):
    return [message.text for message in delivery.snapshot()]


def test_fifo():

    delivery = DeliveryQueue(4)
    for text in ('a', 'b', 'c'):
        delivery.enqueue(text)

    assert [delivery.dequeue().text for _ in range(3)] == ['a', 'b', 'c']
    assert len(delivery) == 0


def test_drop_oldest():

    delivery = DeliveryQueue(3)

    evicted = [delivery.enqueue(str(number)) for number in range(5)]

    assert texts(delivery) == ['2', '3', '4']
    assert delivery.dropped == 2
    assert [message.text for message in evicted if message is not None] == ['0', '1']
    assert evicted[:3] == [None, None, None]


def test_default_capacity():

    delivery = DeliveryQueue()
    assert delivery.capacity == 64

    for number in range(100):
        delivery.enqueue(str(number))

    assert texts(delivery) == [str(number) for number in range(36, 100)]
    assert delivery.depth == 64


def test_requeue_goes_to_tail():

    delivery = DeliveryQueue(4)
    for text in ('a', 'b', 'c'):
        delivery.enqueue(text)

    first = delivery.dequeue()
    assert first.attempts == 0

    delivery.requeue(first)

    assert first.attempts == 1
    assert texts(delivery) == ['b', 'c', 'a']


def test_requeue_obeys_admission():

    delivery = DeliveryQueue(2)
    failing = Message('failing')

    delivery.enqueue('new 1')
    delivery.enqueue('new 2')

    evicted = delivery.requeue(failing)

    assert evicted.text == 'new 1'
    assert texts(delivery) == ['new 2', 'failing']

    # Newer work can push the failing message out as well.

    delivery.enqueue('new 3')
    delivery.enqueue('new 4')
    assert texts(delivery) == ['new 3', 'new 4']
    assert delivery.dropped == 3


def test_dequeue_blocks():

    delivery = DeliveryQueue()
    received = list()

    def consume():
        received.append(delivery.dequeue(timeout=5))

    thread = threading.Thread(target=consume)
    thread.start()

    time.sleep(0.05)
    assert received == []

    delivery.enqueue('late')
    thread.join(5)

    assert [message.text for message in received] == ['late']


def test_dequeue_timeout():

    delivery = DeliveryQueue()

    begin = time.monotonic()
    with pytest.raises(queue.Empty):
        delivery.dequeue(timeout=0.05)

    assert time.monotonic() - begin >= 0.05


def test_close_wakes_waiter():

    delivery = DeliveryQueue()
    outcome = list()

    def consume():
        try:
            delivery.dequeue()
        except QueueClosed:
            outcome.append('closed')

    thread = threading.Thread(target=consume)
    thread.start()
    time.sleep(0.05)

    delivery.close()
    thread.join(5)

    assert outcome == ['closed']


def test_closed_queue_drains_first():

    delivery = DeliveryQueue()
    delivery.enqueue('left over')
    delivery.close()

    assert delivery.dequeue().text == 'left over'

    with pytest.raises(QueueClosed):
        delivery.dequeue()

    delivery.reopen()
    delivery.enqueue('again')
    assert delivery.dequeue().text == 'again'


def test_message_defaults():

    before = time.time()
    message = Message('note')

    assert message.attempts == 0
    assert message.enqueued_at >= before
    assert message.preview(2) == 'no…'
    assert message.preview() == 'note'


def test_bad_capacity():

    with pytest.raises(ValueError):
        DeliveryQueue(0)


def test_concurrent_producers():

    delivery = notebridge.DeliveryQueue(1000)

    def produce(prefix):
        for number in range(100):
            delivery.enqueue('%s%d' % (prefix, number))

    threads = [threading.Thread(target=produce, args=(prefix,)) for prefix in 'abcd']
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert delivery.depth == 400

    # Each producer's own messages stay in order.

    seen = texts(delivery)
    for prefix in 'abcd':
        mine = [int(text[1:]) for text in seen if text[0] == prefix]
        assert mine == list(range(100))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
