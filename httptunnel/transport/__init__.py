# flake8: noqa
from .base import AsyncTransport, Transport
from .tcp import AsyncSocketTransport, SocketTransport
