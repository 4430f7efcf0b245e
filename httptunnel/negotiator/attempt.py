import asyncio
from enum import Enum, auto
from typing import Any, Optional

from httptunnel.defaults import STATUS_PREFIX_SIZE
from httptunnel.errors import TransportError
from httptunnel.protocol import (HeaderScanner, NegotiationRequest,
                                 validate_status)
from httptunnel.transport import AsyncTransport
from httptunnel.utils.loggable import Loggable

from .base import CompletionCallback, NegotiationOutcome, transport_errors


class AttemptState(Enum):
    AWAITING_CONNECT = auto()
    AWAITING_SEND_ACK = auto()
    AWAITING_HEADER_PREFIX = auto()
    SCANNING_TERMINATOR = auto()
    DONE = auto()


class HTTPTunnelAttempt(Loggable):
    """One asynchronous CONNECT negotiation.

    Every transport completion lands in resume(), which dispatches on the
    current state and either issues the next operation or finishes the
    attempt. Completions arrive strictly one after another, so the attempt
    needs no locking.
    """

    transport: AsyncTransport
    request: NegotiationRequest
    callback: CompletionCallback
    user_state: Any
    proxy_addr: Optional[tuple[str, int]]

    state: AttemptState
    op: str
    buf: bytes
    prefix: bytearray
    scanner: HeaderScanner
    outcome: Optional[NegotiationOutcome]

    def __init__(
        self,
        transport: AsyncTransport,
        request: NegotiationRequest,
        callback: CompletionCallback,
        user_state: Any = None,
        proxy_addr: Optional[tuple[str, int]] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.transport = transport
        self.request = request
        self.callback = callback
        self.user_state = user_state
        self.proxy_addr = proxy_addr
        self.state = AttemptState.AWAITING_CONNECT
        self.op = 'connect'
        self.buf = bytes(request)
        self.prefix = bytearray()
        self.scanner = HeaderScanner()
        self.outcome = None

    def __str__(self):
        return '<{} {}>'.format(self.request, self.state.name)

    @property
    def done(self) -> bool:
        return self.state is AttemptState.DONE

    def start(self):
        try:
            if self.proxy_addr is not None:
                self.wait(
                    'connect',
                    lambda: self.transport.begin_connect(self.proxy_addr),
                )
            else:
                self.send_request()
        except Exception as e:
            if self.done:
                raise
            self.fail(e)

    def wait(self, op: str, begin):
        self.op = op
        with transport_errors(op):
            fut = begin()
        fut.add_done_callback(self.resume)

    def resume(self, fut: asyncio.Future):
        if self.done:
            self.logger.debug('late completion for %s', self)
            return
        try:
            if fut.cancelled():
                raise TransportError('{} cancelled'.format(self.op))
            with transport_errors(self.op):
                result = fut.result()
            self.step(result)
        except Exception as e:
            if self.done:
                raise
            self.fail(e)

    def step(self, result: Any):
        if self.state is AttemptState.AWAITING_CONNECT:
            self.logger.debug('connected to %s', self.proxy_addr)
            self.send_request()
        elif self.state is AttemptState.AWAITING_SEND_ACK:
            if result < len(self.buf):
                raise TransportError('short send: {}/{}'.format(
                    result, len(self.buf)))
            self.logger.debug('sent request for %s', self.request)
            self.state = AttemptState.AWAITING_HEADER_PREFIX
            self.receive_prefix()
        elif self.state is AttemptState.AWAITING_HEADER_PREFIX:
            if len(result) == 0:
                raise TransportError('connection closed by peer')
            self.prefix += result
            if len(self.prefix) < STATUS_PREFIX_SIZE:
                self.receive_prefix()
                return
            validate_status(bytes(self.prefix), len(self.prefix))
            self.logger.debug('status accepted for %s', self.request)
            self.state = AttemptState.SCANNING_TERMINATOR
            self.scan()
        elif self.state is AttemptState.SCANNING_TERMINATOR:
            if len(result) == 0:
                raise TransportError('connection closed by peer')
            self.scanner.feed(result)
            self.scan()
        else:
            raise RuntimeError('unexpected state: {}'.format(self.state))

    def send_request(self):
        self.state = AttemptState.AWAITING_SEND_ACK
        self.wait('send', lambda: self.transport.begin_send(self.buf))

    def receive_prefix(self):
        n = STATUS_PREFIX_SIZE - len(self.prefix)
        self.wait('receive', lambda: self.transport.begin_receive(n))

    def scan(self):
        # Consume what is already buffered before going back to the loop.
        while not self.scanner.done:
            with transport_errors('receive'):
                buf = self.transport.receive_nowait(1)
            if buf is None:
                self.wait('receive', lambda: self.transport.begin_receive(1))
                return
            if len(buf) == 0:
                raise TransportError('connection closed by peer')
            self.scanner.feed(buf)
        self.logger.debug('headers complete for %s', self.request)
        self.complete(NegotiationOutcome.success())

    def fail(self, exc: Exception):
        self.logger.debug('negotiation failed for %s: %s', self.request, exc)
        self.complete(NegotiationOutcome.from_exception(exc))

    def complete(self, outcome: NegotiationOutcome):
        if self.done:
            raise RuntimeError('attempt already completed: {}'.format(self))
        self.state = AttemptState.DONE
        self.outcome = outcome
        self.callback(outcome, self.user_state)
