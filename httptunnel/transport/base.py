import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from httptunnel.utils.loggable import Loggable


class Transport(Loggable, ABC):
    """Blocking byte stream owned by the caller."""

    @abstractmethod
    def send(self, buf: bytes) -> int:
        raise NotImplementedError

    @abstractmethod
    def receive(self, n: int) -> bytes:
        """Return at most n bytes, empty bytes when the peer closed."""
        raise NotImplementedError

    def close(self):
        pass


class AsyncTransport(Loggable, ABC):
    """Non-blocking byte stream, each operation completes through a future.

    Completion callbacks attached to the returned futures run on the event
    loop one at a time, in the order the futures complete.
    """

    @abstractmethod
    def begin_connect(self, addr: tuple[str, int]) -> asyncio.Future:
        raise NotImplementedError

    @abstractmethod
    def begin_send(self, buf: bytes) -> asyncio.Future:
        raise NotImplementedError

    @abstractmethod
    def begin_receive(self, n: int) -> asyncio.Future:
        raise NotImplementedError

    @abstractmethod
    def receive_nowait(self, n: int) -> Optional[bytes]:
        """Return data already available, None if a read would block."""
        raise NotImplementedError

    def close(self):
        pass
