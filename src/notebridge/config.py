""" Runtime settings for a :class:`notebridge.Bridge`. Values are layered:
    built-in defaults, then the optional ``notebridge.json`` file in the
    configuration :func:`directory`, then ``NOTEBRIDGE_<NAME>`` environment
    variables.
"""

import dataclasses
import logging
import os
from typing import Optional

from . import json
from .protocol import fields
from .transport import tcp

logger = logging.getLogger(__name__)

filename = 'notebridge.json'
environment_prefix = 'NOTEBRIDGE_'


@dataclasses.dataclass
class Settings:

    transport: str = 'stream'
    mode: str = 'listen'
    listen_address: str = '0.0.0.0'
    listen_port: int = tcp.default_listen_port
    connect_host: str = tcp.default_connect_host
    connect_port: int = tcp.default_connect_port
    connect_timeout: float = 2.0
    queue_capacity: int = 64
    reconnect_delay: float = 1.0
    retry_delay: float = 2.0
    plain_chunk_size: int = fields.PLAIN_CHUNK_SIZE
    base64_chunk_size: int = fields.BASE64_CHUNK_SIZE
    framed: bool = True
    status_address: Optional[str] = None


    def __post_init__(self):
        self.validate()


    def validate(self):

        if self.transport not in ('stream', 'line'):
            raise ValueError('transport must be stream or line, not ' + repr(self.transport))

        if self.mode not in ('listen', 'connect'):
            raise ValueError('mode must be listen or connect, not ' + repr(self.mode))

        for name in ('queue_capacity', 'plain_chunk_size', 'base64_chunk_size'):
            if getattr(self, name) < 1:
                raise ValueError(name + ' must be at least 1')

        for name in ('connect_timeout', 'reconnect_delay', 'retry_delay'):
            if getattr(self, name) < 0:
                raise ValueError(name + ' cannot be negative')


    def replace(self, **changes):
        return dataclasses.replace(self, **changes)


# end of class Settings


_fields = dict((field.name, field) for field in dataclasses.fields(Settings))


def _convert(name, value):
    """ Coerce *value*, possibly a string from the environment, to the type
        of the named setting.
    """

    default = _fields[name].default

    if name == 'status_address':
        if value in (None, '', 'none', 'None'):
            return None
        return str(value)

    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError('not a boolean for ' + name + ': ' + repr(value))

    if isinstance(default, int):
        return int(value)

    if isinstance(default, float):
        return float(value)

    return str(value)


def directory(default=None):
    """ Return the directory location where the configuration file is
        expected. If *default* is provided it is used and remembered;
        otherwise the ``NOTEBRIDGE_HOME`` environment variable is checked,
        falling back to ``$HOME/.notebridge``.
    """

    if default is not None:
        if os.path.isabs(default) == False:
            raise ValueError('the default directory must be an absolute path')
        directory.found = default
        return default

    found = directory.found
    if found is not None:
        return found

    try:
        found = os.environ['NOTEBRIDGE_HOME']
    except KeyError:
        pass
    else:
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise RuntimeError('NOTEBRIDGE_HOME and HOME environment variables not set, cannot determine notebridge configuration directory')

    return os.path.join(home, '.notebridge')

directory.found = None


def read(path):
    """ Return the dictionary of settings in the JSON file at *path*, or an
        empty dictionary if there is no such file.
    """

    try:
        with open(path, 'rb') as handle:
            raw = handle.read()
    except FileNotFoundError:
        return dict()

    return json.load_object(raw, path)


def load(path=None, environ=None, **overrides):
    """ Build a :class:`Settings` instance. *path* defaults to
        ``notebridge.json`` in :func:`directory`; *environ* defaults to
        :data:`os.environ`. Keyword *overrides* win over everything else.
    """

    if path is None:
        path = os.path.join(directory(), filename)

    if environ is None:
        environ = os.environ

    values = dict()

    for name, value in read(path).items():
        if name not in _fields:
            raise ValueError('unknown setting in ' + path + ': ' + repr(name))
        values[name] = _convert(name, value)

    for name in _fields:
        key = environment_prefix + name.upper()
        try:
            value = environ[key]
        except KeyError:
            continue
        values[name] = _convert(name, value)

    for name, value in overrides.items():
        if name not in _fields:
            raise ValueError('unknown setting: ' + repr(name))
        values[name] = value

    settings = Settings(**values)
    logger.debug("Loaded settings from %s: %r", path, settings)
    return settings


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
