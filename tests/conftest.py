import asyncio
from collections import deque
from collections.abc import Iterable
from typing import Optional

import pytest

from httptunnel.transport import AsyncTransport, Transport


class Script:
    """Peer replies delivered chunk by chunk, empty bytes once exhausted."""

    def __init__(self, chunks: Iterable[bytes]):
        self.chunks = deque(chunks)
        self.current = b''

    @property
    def available(self) -> bool:
        return len(self.current) != 0

    def take(self, n: int) -> bytes:
        if not self.current and self.chunks:
            self.current = self.chunks.popleft()
        buf, self.current = self.current[:n], self.current[n:]
        return buf

    def rest(self) -> bytes:
        return self.current + b''.join(self.chunks)


class ScriptedTransport(Transport):

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        send_limit: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__()
        self.script = Script(chunks)
        self.send_limit = send_limit
        self.error = error
        self.sent: list[bytes] = []
        self.receives = 0

    def send(self, buf: bytes) -> int:
        self.sent.append(buf)
        if self.send_limit is not None:
            return min(self.send_limit, len(buf))
        return len(buf)

    def receive(self, n: int) -> bytes:
        self.receives += 1
        buf = self.script.take(n)
        if len(buf) == 0 and self.error is not None:
            raise self.error
        return buf


class ScriptedAsyncTransport(AsyncTransport):

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        send_limit: Optional[int] = None,
        connect_error: Optional[Exception] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__()
        self.script = Script(chunks)
        self.send_limit = send_limit
        self.connect_error = connect_error
        self.error = error
        self.connected_to: Optional[tuple[str, int]] = None
        self.sent: list[bytes] = []
        self.begin_receives = 0

    def resolved(self, result=None, exc: Optional[Exception] = None):
        fut = asyncio.get_running_loop().create_future()
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(result)
        return fut

    def begin_connect(self, addr):
        if self.connect_error is not None:
            return self.resolved(exc=self.connect_error)
        self.connected_to = addr
        return self.resolved()

    def begin_send(self, buf: bytes):
        self.sent.append(buf)
        if self.send_limit is not None:
            return self.resolved(min(self.send_limit, len(buf)))
        return self.resolved(len(buf))

    def begin_receive(self, n: int):
        self.begin_receives += 1
        buf = self.script.take(n)
        if len(buf) == 0 and self.error is not None:
            return self.resolved(exc=self.error)
        return self.resolved(buf)

    def receive_nowait(self, n: int) -> Optional[bytes]:
        if not self.script.available:
            return None
        return self.script.take(n)


@pytest.fixture
def scripted():
    return ScriptedTransport


@pytest.fixture
def scripted_async():
    return ScriptedAsyncTransport
