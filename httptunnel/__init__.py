# flake8: noqa
from .errors import InvalidArgument, ProtocolError, TransportError, TunnelError
from .negotiator import (HTTPNegotiator, HTTPTunnelAttempt, NegotiationOutcome,
                         Negotiator, OutcomeKind)
from .protocol import (HeaderScanner, NegotiationRequest, format_connect,
                       next_state, validate_status)
from .transport import (AsyncSocketTransport, AsyncTransport, SocketTransport,
                        Transport)
