"""HTTP CONNECT handshake pieces shared by both negotiation drivers.

The proxy reply is interpreted only as far as the status line prefix and the
blank line that ends the headers. See RFC 9110 section 9.3.6 for CONNECT.

Links:
  https://www.rfc-editor.org/rfc/rfc9110#name-connect
"""
from dataclasses import dataclass
from typing import Optional

from httptunnel.defaults import (AUTH_HEADER, AUTH_SCHEME, HOST_MAX_LENGTH,
                                 PORT_MAX, PORT_MIN, STATUS_PREFIX_SIZE)
from httptunnel.errors import InvalidArgument, ProtocolError

CR = 0x0d
LF = 0x0a

SCAN_TERMINAL = 4

STATUS_VERSIONS = ('HTTP/1.1 ', 'HTTP/1.0 ')
STATUS_OK = '200'


@dataclass(frozen=True)
class NegotiationRequest:
    host: str
    port: int
    token: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.host, str) or len(self.host) == 0:
            raise InvalidArgument('host cannot be empty')
        if len(self.host) > HOST_MAX_LENGTH:
            raise InvalidArgument('host too long: {}'.format(len(self.host)))
        if any(c.isspace() or not c.isprintable() for c in self.host):
            raise InvalidArgument('invalid host: {!r}'.format(self.host))
        if self.token and any(c in '\r\n' or not c.isprintable()
                              for c in self.token):
            raise InvalidArgument('invalid token')
        if isinstance(self.port, bool) or not isinstance(self.port, int) \
                or not PORT_MIN <= self.port <= PORT_MAX:
            raise InvalidArgument('invalid port: {!r}'.format(self.port))

    def __str__(self):
        return '<{} {}>'.format(self.host, self.port)

    @property
    def authority(self) -> str:
        return '{}:{}'.format(self.host, self.port)

    def __bytes__(self) -> bytes:
        lines = [
            'CONNECT {} HTTP/1.1'.format(self.authority),
            'Host: {}'.format(self.authority),
        ]
        if self.token:
            lines.append('{}: {} {}'.format(AUTH_HEADER, AUTH_SCHEME,
                                            self.token))
        try:
            return ('\r\n'.join(lines) + '\r\n\r\n').encode('ascii')
        except UnicodeEncodeError as e:
            raise InvalidArgument('non-ascii request: {}'.format(e)) from e


def format_connect(host: str, port: int, token: Optional[str] = None) -> bytes:
    return bytes(NegotiationRequest(host=host, port=port, token=token))


def validate_status(buf: bytes, length: int = STATUS_PREFIX_SIZE):
    """Check the status line prefix of a proxy reply.

    Only the first 13 bytes are looked at: a known version, the status code
    and the separator right after it. Anything but ``200`` is a failure.
    """
    if length < STATUS_PREFIX_SIZE or len(buf) < STATUS_PREFIX_SIZE:
        raise ProtocolError('http', 'header', 'short')
    header = buf[:STATUS_PREFIX_SIZE].decode('ascii', errors='replace')
    if not header.upper().startswith(STATUS_VERSIONS) \
            or not header.endswith(' '):
        raise ProtocolError('http', 'header', 'malformed')
    code = header[9:12]
    if code != STATUS_OK:
        status = int(code) if code.isdigit() else None
        raise ProtocolError('http', 'status', code, status=status)


def next_state(state: int, b: int) -> int:
    """Advance the CRLFCRLF matcher by one byte.

    Even states expect CR, odd states expect LF. A CR that breaks a partial
    match restarts the match at 1 instead of 0.
    """
    if state == SCAN_TERMINAL:
        return state
    if b == (CR if state % 2 == 0 else LF):
        return state + 1
    return 1 if b == CR else 0


class HeaderScanner:
    state: int

    def __init__(self):
        self.state = 0

    @property
    def done(self) -> bool:
        return self.state == SCAN_TERMINAL

    def feed(self, buf: bytes) -> int:
        """Feed bytes until the terminator, return the number consumed."""
        if self.done:
            return 0
        for i, b in enumerate(buf):
            self.state = next_state(self.state, b)
            if self.state == SCAN_TERMINAL:
                return i + 1
        return len(buf)
