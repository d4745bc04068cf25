import base64
import math

import pytest

from notebridge.protocol import encoder
from notebridge.protocol import fields
from notebridge.protocol import shorthand
from notebridge.protocol.message import Encoding, Session


def test_ascii_safety():

    assert encoder.is_ascii_safe('')
    assert encoder.is_ascii_safe(' ~ plain text 123 |')
    assert not encoder.is_ascii_safe('tab\there')
    assert not encoder.is_ascii_safe('new\nline')
    assert not encoder.is_ascii_safe('café')
    assert not encoder.is_ascii_safe('\x7f')
    assert not encoder.is_ascii_safe('محمد')


def test_plain_round_trip():

    for text in ('', 'a', 'Patient has best corrected visual acuity of 20/40.', 'x' * 7000):
        session = encoder.encode(text)
        assert session.encoding is Encoding.PLAIN
        assert encoder.decode(session) == shorthand.normalize(text)


def test_base64_round_trip():

    for text in ('محمد عبدالله', 'café au lait', 'line one\nline two', '‖', '\U0001f600' * 900):
        session = encoder.encode(text)
        assert session.encoding is Encoding.BASE64
        assert encoder.decode(session) == shorthand.normalize(text)


def test_arabic_name():

    name = 'محمد عبدالله'
    session = encoder.encode(name)

    assert session.encoding is Encoding.BASE64
    assert session.total_chunks == 1

    decoded = base64.b64decode(session.chunks[0]).decode('utf-8')
    assert decoded == name


def test_delimiter_escape():

    session = encoder.encode('cost|benefit')

    assert session.encoding is Encoding.PLAIN
    assert session.chunks == ('cost‖benefit',)
    assert '|' not in session.chunks[0]
    assert encoder.decode(session) == 'cost|benefit'

    text = '|a||b|'
    session = encoder.encode(text)
    payload = ''.join(session.chunks)
    assert '|' not in payload
    assert [i for i, c in enumerate(payload) if c == fields.DELIMITER_ESCAPE] == \
           [i for i, c in enumerate(text) if c == '|']


def test_chunk_counts():

    coder = encoder.Encoder(plain_chunk_size=10, base64_chunk_size=8)

    for text in ('', 'a', 'x' * 10, 'x' * 11, 'y|' * 17, 'é' * 25):
        encoding, prepared = coder.prepare(text)
        session = coder.encode(text)

        if encoding is Encoding.PLAIN:
            size = 10
        else:
            size = 8

        assert session.encoding is encoding
        assert session.total_chunks == max(1, math.ceil(len(prepared) / size))
        assert ''.join(session.chunks) == prepared
        assert all(len(chunk) <= size for chunk in session.chunks)


def test_default_chunk_sizes():

    session = encoder.encode('x' * 3001)
    assert [len(chunk) for chunk in session.chunks] == [3000, 1]

    session = encoder.encode('é' * 3000)
    assert session.encoding is Encoding.BASE64
    assert all(len(chunk) <= 2000 for chunk in session.chunks)
    assert len(session.chunks[0]) == 2000


def test_empty_text():

    session = encoder.encode('')
    assert session.chunks == ('',)
    assert session.total_chunks == 1
    assert encoder.decode(session) == ''


def test_no_normalizer():

    coder = encoder.Encoder(normalizer=None)
    session = coder.encode('intraocular pressure')
    assert encoder.decode(session) == 'intraocular pressure'


def test_bad_chunk_size():

    with pytest.raises(ValueError):
        encoder.Encoder(plain_chunk_size=0)

    with pytest.raises(ValueError):
        encoder.chunk('abc', 0)


def test_empty_session_rejected():

    with pytest.raises(ValueError):
        Session('ABC', (), Encoding.PLAIN)


def test_base36():

    assert encoder.base36(0) == '0'
    assert encoder.base36(35) == 'Z'
    assert encoder.base36(36) == '10'
    assert encoder.base36(1700000000000) == format_base36(1700000000000)

    with pytest.raises(ValueError):
        encoder.base36(-1)


def format_base36(number):
    digits = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
    result = ''
    while number:
        number, remainder = divmod(number, 36)
        result = digits[remainder] + result
    return result


def test_session_ids_never_repeat():

    ids = encoder.SessionIds(clock=lambda: 1700000000.0)

    issued = [ids() for _ in range(5)]
    assert len(set(issued)) == 5
    assert [int(value, 36) for value in issued] == list(range(1700000000000, 1700000000005))
    assert all(value == value.upper() for value in issued)


def test_session_ids_follow_clock():

    now = [1700000000.0]
    ids = encoder.SessionIds(clock=lambda: now[0])

    first = ids()
    now[0] += 10
    second = ids()

    assert int(second, 36) - int(first, 36) == 10000


def test_encode_new_id_each_time():

    first = encoder.encode('same text')
    second = encoder.encode('same text')

    assert first.session_id != second.session_id
    assert first.chunks == second.chunks


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
