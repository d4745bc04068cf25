import os
import socket
import threading
import time

import pytest

import notebridge


@pytest.fixture
def home(tmp_path, monkeypatch):
    """ Point the configuration directory at an empty temporary directory
        and clear any NOTEBRIDGE_* settings inherited from the environment.
    """

    for key in list(os.environ):
        if key.startswith('NOTEBRIDGE_'):
            monkeypatch.delenv(key)

    monkeypatch.setenv('NOTEBRIDGE_HOME', str(tmp_path))
    monkeypatch.setattr(notebridge.config.directory, 'found', None)

    return tmp_path


@pytest.fixture
def settings(home):
    """ Settings for a bridge on an ephemeral loopback port, with short
        delays so reconnects happen quickly.
    """

    return notebridge.config.Settings(
        listen_address='127.0.0.1',
        listen_port=0,
        reconnect_delay=0.05,
        retry_delay=0.05,
    )


@pytest.fixture
def pair():
    """ A connected pair of stream sockets: (sender side, receiver side).
    """

    left, right = socket.socketpair()
    right.settimeout(5)

    yield left, right

    for sock in (left, right):
        try:
            sock.close()
        except OSError:
            pass


class Recorder:
    """ Status listener that keeps every event and lets a test wait for a
        particular one.
    """

    def __init__(self):
        self.events = list()
        self.condition = threading.Condition()


    def __call__(self, event):
        with self.condition:
            self.events.append(event)
            self.condition.notify_all()


    def kinds(self):
        with self.condition:
            return [event.kind for event in self.events]


    def wait_for(self, kind, count=1, timeout=5, detail=None):

        def matches():
            found = [event for event in self.events if event.kind == kind]
            if detail is not None:
                found = [event for event in found if event.detail == detail]
            return len(found) >= count

        with self.condition:
            if self.condition.wait_for(matches, timeout) == False:
                raise AssertionError('no %r event after %.1f sec, saw %r' % (kind, timeout, self.kinds()))


@pytest.fixture
def recorder():
    return Recorder()


def wait_until(predicate, timeout=5):
    """ Poll *predicate* until it returns something true.
    """

    expiration = time.monotonic() + timeout
    while time.monotonic() < expiration:
        if predicate():
            return True
        time.sleep(0.01)

    raise AssertionError('condition not met within %.1f sec' % (timeout))


@pytest.fixture
def until():
    return wait_until


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
