import pytest

from notebridge import protocol
from notebridge.protocol import builder
from notebridge.protocol import wire
from notebridge.protocol.message import Chunk, Encoding, Session, SessionEnd, SessionStart


def test_scenario():

    session = protocol.encode('Patient has best corrected visual acuity of 20/40 and intraocular pressure 15.')
    sid = session.session_id

    assert wire.lines(session) == [
        'SESSION_START|' + sid + '|CHUNKS=1|ENC=PLAIN',
        'CHUNK|' + sid + '|1/1|Patient has BCVA of 20/40 and IOP 15.',
        'SESSION_END|' + sid,
    ]


def test_frame_order():

    session = Session('K1', ('aa', 'bb', 'c'), Encoding.BASE64)
    frames = builder.frame(session)

    assert frames[0] == SessionStart('K1', 3, Encoding.BASE64)
    assert frames[1:4] == [Chunk('K1', 1, 3, 'aa'), Chunk('K1', 2, 3, 'bb'), Chunk('K1', 3, 3, 'c')]
    assert frames[-1] == SessionEnd('K1')
    assert len(frames) == session.total_chunks + 2


def test_base64_token():

    session = Session('K2', ('2LPZhA==',), Encoding.BASE64)
    assert wire.lines(session)[0] == 'SESSION_START|K2|CHUNKS=1|ENC=B64'


def test_parse_inverts_render():

    frames = (
        SessionStart('LXYZ12', 4, Encoding.PLAIN),
        SessionStart('LXYZ12', 1, Encoding.BASE64),
        Chunk('LXYZ12', 2, 4, 'cost‖benefit'),
        Chunk('LXYZ12', 1, 1, ''),
        SessionEnd('LXYZ12'),
    )

    for frame in frames:
        assert wire.parse(wire.render(frame)) == frame
        assert wire.parse(wire.render(frame) + '\r\n') == frame


@pytest.mark.parametrize('line', (
    '',
    'HELLO|X',
    'SESSION_END|',
    'SESSION_END|A|B',
    'SESSION_START|A|CHUNKS=2',
    'SESSION_START|A|CHUNKS=two|ENC=PLAIN',
    'SESSION_START|A|CHUNKS=0|ENC=PLAIN',
    'SESSION_START|A|COUNT=2|ENC=PLAIN',
    'SESSION_START|A|CHUNKS=2|ENC=ROT13',
    'SESSION_START||CHUNKS=2|ENC=PLAIN',
    'CHUNK|A|1|payload',
    'CHUNK|A|3/2|payload',
    'CHUNK|A|0/2|payload',
    'CHUNK|A|1/2',
))
def test_malformed(line):

    with pytest.raises(wire.ProtocolError):
        wire.parse(line)


def test_protocol_error_is_value_error():
    assert issubclass(wire.ProtocolError, ValueError)


def test_render_rejects_other_objects():

    with pytest.raises(TypeError):
        wire.render('CHUNK|A|1/1|x')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
