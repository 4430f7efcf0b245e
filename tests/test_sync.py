import pytest

from httptunnel.errors import InvalidArgument, ProtocolError, TransportError
from httptunnel.negotiator import HTTPNegotiator, OutcomeKind

TARGET = ('example.com', 443)
REQUEST = (b'CONNECT example.com:443 HTTP/1.1\r\n'
           b'Host: example.com:443\r\n'
           b'\r\n')
ESTABLISHED = b'HTTP/1.1 200 Connection established\r\n\r\n'


def test_negotiate_success(scripted):
    transport = scripted([ESTABLISHED])
    HTTPNegotiator().negotiate(transport, TARGET)
    assert transport.sent == [REQUEST]


def test_negotiate_sends_token(scripted):
    transport = scripted([ESTABLISHED])
    HTTPNegotiator(token='abc').negotiate(transport, TARGET)
    assert b'Authentication: XAuth abc\r\n' in transport.sent[0]


def test_negotiate_leaves_tunneled_bytes_unread(scripted):
    transport = scripted([
        b'HTTP/1.0 200 OK\r\nProxy-Agent: test\r\n\r\n\x16\x03\x01',
    ])
    HTTPNegotiator().negotiate(transport, TARGET)
    assert transport.script.rest() == b'\x16\x03\x01'


def test_negotiate_split_replies(scripted):
    transport = scripted([b'HTTP/', b'1.1 20', b'0 OK\r', b'\n\r', b'\n'])
    HTTPNegotiator().negotiate(transport, TARGET)
    assert transport.script.rest() == b''


def test_negotiate_proxy_auth_required(scripted):
    transport = scripted(
        [b'HTTP/1.1 407 Proxy Authentication Required\r\n\r\n'])
    with pytest.raises(ProtocolError) as info:
        HTTPNegotiator().negotiate(transport, TARGET)
    assert info.value.status == 407
    assert len(transport.sent) == 1


def test_negotiate_malformed_status(scripted):
    transport = scripted([b'SSH-2.0-OpenSSH_9.6\r\n'])
    with pytest.raises(ProtocolError) as info:
        HTTPNegotiator().negotiate(transport, TARGET)
    assert info.value.breadcrumb == ['http', 'header', 'malformed']


def test_negotiate_peer_closes_in_status_line(scripted):
    transport = scripted([b'HTTP/'])
    with pytest.raises(TransportError):
        HTTPNegotiator().negotiate(transport, TARGET)


def test_negotiate_peer_closes_in_headers(scripted):
    transport = scripted([b'HTTP/1.1 200 OK\r\nVia: x\r\n'])
    with pytest.raises(TransportError):
        HTTPNegotiator().negotiate(transport, TARGET)


def test_negotiate_short_send(scripted):
    transport = scripted([ESTABLISHED], send_limit=10)
    with pytest.raises(TransportError):
        HTTPNegotiator().negotiate(transport, TARGET)
    assert transport.receives == 0


def test_negotiate_wraps_transport_exception(scripted):
    reset = ConnectionResetError('reset by peer')
    transport = scripted([b'HTTP/1.1 200'], error=reset)
    with pytest.raises(TransportError) as info:
        HTTPNegotiator().negotiate(transport, TARGET)
    assert info.value.cause is reset


@pytest.mark.parametrize('addr', [
    ('h' * 256, 443),
    ('example.com', 0),
    ('example.com', 65536),
])
def test_negotiate_invalid_target_sends_nothing(scripted, addr):
    transport = scripted([ESTABLISHED])
    with pytest.raises(InvalidArgument):
        HTTPNegotiator().negotiate(transport, addr)
    assert transport.sent == []


def test_try_negotiate_outcomes(scripted):
    negotiator = HTTPNegotiator()
    ok = negotiator.try_negotiate(scripted([ESTABLISHED]), TARGET)
    assert ok.ok
    assert ok.error is None

    bad = negotiator.try_negotiate(
        scripted([b'HTTP/1.1 502 Bad Gateway\r\n\r\n']), TARGET)
    assert bad.kind is OutcomeKind.PROTOCOL_ERROR
    with pytest.raises(ProtocolError):
        bad.unwrap()

    closed = negotiator.try_negotiate(scripted([b'HTTP/']), TARGET)
    assert closed.kind is OutcomeKind.TRANSPORT_ERROR
