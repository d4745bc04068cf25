''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`. Used for the
    configuration file and for status events published over ZeroMQ.
'''

# The business about conditionally importing the libraries is intended to
# avoid importing less efficient libraries if they are not available.

msgspec = None
orjson = None
json = None

try:
    import msgspec
except ImportError:
    pass

if msgspec is None:
    try:
        import orjson
    except ImportError:
        pass

if msgspec is None and orjson is None:
    import json


# The msgspec 'encode' operation returns bytes, as does orjson.dumps. To
# maintain alignment all 'dumps' methods need to do so as well.

def json_dumps(*args, **kwargs):
    return json.dumps(*args, **kwargs).encode()

if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
    DecodeError = msgspec.DecodeError
elif orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
    DecodeError = orjson.JSONDecodeError
else:
    dumps = json_dumps
    loads = json.loads
    DecodeError = json.JSONDecodeError


def load_object(raw, source='input'):
    """ Decode *raw* and require a JSON object at the top level, as both the
        settings file and a status event must be. Any failure is raised as
        :class:`ValueError` naming *source*.
    """

    try:
        loaded = loads(raw)
    except DecodeError as exc:
        raise ValueError('invalid JSON in ' + str(source) + ': ' + str(exc)) from exc

    if isinstance(loaded, dict) == False:
        raise ValueError('expected a JSON object in ' + str(source))

    return loaded


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
