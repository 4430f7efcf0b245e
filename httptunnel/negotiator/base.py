import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from typing_extensions import Self

from httptunnel.errors import ProtocolError, TransportError, TunnelError
from httptunnel.transport import AsyncTransport, Transport
from httptunnel.utils.loggable import Loggable
from httptunnel.utils.url import URL


class OutcomeKind(Enum):
    SUCCESS = 'success'
    PROTOCOL_ERROR = 'protocol_error'
    TRANSPORT_ERROR = 'transport_error'


@dataclass(frozen=True)
class NegotiationOutcome:
    kind: OutcomeKind
    error: Optional[TunnelError] = None

    def __str__(self):
        if self.error is None:
            return '<{}>'.format(self.kind.value)
        return '<{} {}>'.format(self.kind.value, self.error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls) -> Self:
        return cls(kind=OutcomeKind.SUCCESS)

    @classmethod
    def from_exception(cls, exc: BaseException) -> Self:
        if isinstance(exc, ProtocolError):
            return cls(kind=OutcomeKind.PROTOCOL_ERROR, error=exc)
        if not isinstance(exc, TransportError):
            exc = TransportError('negotiation aborted', exc)
        return cls(kind=OutcomeKind.TRANSPORT_ERROR, error=exc)

    def unwrap(self):
        if self.error is not None:
            raise self.error


CompletionCallback = Callable[[NegotiationOutcome, Any], None]


@contextmanager
def transport_errors(op: str) -> Iterator[None]:
    """Wrap failures raised by a transport operation in TransportError."""
    try:
        yield
    except TunnelError:
        raise
    except Exception as e:
        raise TransportError('{} failed'.format(op), e) from e


class Negotiator(Loggable, ABC):
    """Tunnel handshake run over a transport owned by the caller.

    Implementations register themselves under their proxy URL scheme.
    """

    scheme: str
    token: Optional[str]

    scheme_dict: dict[str, type['Negotiator']] = dict()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if hasattr(cls, 'scheme'):
            cls.scheme_dict[cls.scheme] = cls

    def __init__(self, token: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.token = token

    @classmethod
    def from_url(cls, url: URL, token: Optional[str] = None) -> 'Negotiator':
        if url.scheme not in cls.scheme_dict:
            raise ValueError('unsupported scheme: {}'.format(url.scheme))
        scheme_cls = cls.scheme_dict[url.scheme]
        return scheme_cls(token=token or url.token or None)

    @abstractmethod
    def negotiate(self, transport: Transport, addr: tuple[str, int]):
        """Run the handshake, return when the tunnel is ready."""
        raise NotImplementedError

    @abstractmethod
    def begin_negotiate(
        self,
        transport: AsyncTransport,
        addr: tuple[str, int],
        callback: CompletionCallback,
        state: Any = None,
        proxy_addr: Optional[tuple[str, int]] = None,
    ) -> Any:
        """Start the handshake, callback is invoked exactly once."""
        raise NotImplementedError

    def try_negotiate(
        self,
        transport: Transport,
        addr: tuple[str, int],
    ) -> NegotiationOutcome:
        try:
            self.negotiate(transport, addr)
        except (ProtocolError, TransportError) as e:
            return NegotiationOutcome.from_exception(e)
        return NegotiationOutcome.success()

    async def negotiate_async(
        self,
        transport: AsyncTransport,
        addr: tuple[str, int],
        proxy_addr: Optional[tuple[str, int]] = None,
    ) -> NegotiationOutcome:
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[NegotiationOutcome] = loop.create_future()

        def done(outcome: NegotiationOutcome, _: Any):
            # The waiter may be cancelled by the caller's own deadline.
            if not fut.done():
                fut.set_result(outcome)

        self.begin_negotiate(transport, addr, done, proxy_addr=proxy_addr)
        return await fut
