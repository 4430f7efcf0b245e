from typing import Any, Optional

from httptunnel.defaults import STATUS_PREFIX_SIZE
from httptunnel.errors import TransportError
from httptunnel.protocol import (HeaderScanner, NegotiationRequest,
                                 validate_status)
from httptunnel.transport import AsyncTransport, Transport
from httptunnel.utils.override import override

from .attempt import HTTPTunnelAttempt
from .base import CompletionCallback, Negotiator, transport_errors


class HTTPNegotiator(Negotiator):
    """HTTP CONNECT tunnel.

    The reply is consumed one byte at a time after the status prefix, so
    on success the transport is left right after the blank line and the
    next byte read belongs to the tunneled stream.
    """

    scheme = 'http'

    def make_request(self, addr: tuple[str, int]) -> NegotiationRequest:
        host, port = addr
        return NegotiationRequest(host=host, port=port, token=self.token)

    @override(Negotiator)
    def negotiate(self, transport: Transport, addr: tuple[str, int]):
        req = self.make_request(addr)
        buf = bytes(req)
        with transport_errors('send'):
            sent = transport.send(buf)
        if sent < len(buf):
            raise TransportError('short send: {}/{}'.format(sent, len(buf)))
        self.logger.debug('sent request for %s', req)

        prefix = self.receive_exactly(transport, STATUS_PREFIX_SIZE)
        validate_status(prefix, len(prefix))
        self.logger.debug('status accepted for %s', req)

        scanner = HeaderScanner()
        while not scanner.done:
            scanner.feed(self.receive_exactly(transport, 1))
        self.logger.debug('headers complete for %s', req)

    def receive_exactly(self, transport: Transport, n: int) -> bytes:
        buf = b''
        while len(buf) < n:
            with transport_errors('receive'):
                next_buf = transport.receive(n - len(buf))
            if len(next_buf) == 0:
                raise TransportError('connection closed by peer')
            buf += next_buf
        return buf

    @override(Negotiator)
    def begin_negotiate(
        self,
        transport: AsyncTransport,
        addr: tuple[str, int],
        callback: CompletionCallback,
        state: Any = None,
        proxy_addr: Optional[tuple[str, int]] = None,
    ) -> HTTPTunnelAttempt:
        attempt = HTTPTunnelAttempt(
            transport=transport,
            request=self.make_request(addr),
            callback=callback,
            user_state=state,
            proxy_addr=proxy_addr,
        )
        attempt.start()
        return attempt
