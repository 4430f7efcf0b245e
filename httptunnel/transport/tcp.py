import asyncio
import socket
from collections.abc import Coroutine
from typing import Optional

from typing_extensions import Self

from httptunnel.transport.base import AsyncTransport, Transport
from httptunnel.utils.override import override


class SocketTransport(Transport):
    sock: socket.socket

    def __init__(self, sock: socket.socket, **kwargs):
        super().__init__(**kwargs)
        self.sock = sock

    @override(Transport)
    def send(self, buf: bytes) -> int:
        return self.sock.send(buf)

    @override(Transport)
    def receive(self, n: int) -> bytes:
        return self.sock.recv(n)

    @override(Transport)
    def close(self):
        self.sock.close()


class AsyncSocketTransport(AsyncTransport):
    sock: socket.socket
    tasks: set[asyncio.Task]

    def __init__(self, sock: socket.socket, **kwargs):
        super().__init__(**kwargs)
        sock.setblocking(False)
        self.sock = sock
        self.tasks = set()

    def create_task(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    @override(AsyncTransport)
    def begin_connect(self, addr: tuple[str, int]) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        return self.create_task(loop.sock_connect(self.sock, addr))

    async def sendall(self, buf: bytes) -> int:
        loop = asyncio.get_running_loop()
        await loop.sock_sendall(self.sock, buf)
        return len(buf)

    @override(AsyncTransport)
    def begin_send(self, buf: bytes) -> asyncio.Future:
        return self.create_task(self.sendall(buf))

    @override(AsyncTransport)
    def begin_receive(self, n: int) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        return self.create_task(loop.sock_recv(self.sock, n))

    @override(AsyncTransport)
    def receive_nowait(self, n: int) -> Optional[bytes]:
        try:
            return self.sock.recv(n)
        except (BlockingIOError, InterruptedError):
            return None

    @override(AsyncTransport)
    def close(self):
        # Pending operations complete as cancelled.
        for task in list(self.tasks):
            task.cancel()
        self.sock.close()

    @classmethod
    def from_family(
        cls,
        family: socket.AddressFamily = socket.AF_INET,
        **kwargs,
    ) -> Self:
        sock = socket.socket(family, socket.SOCK_STREAM)
        return cls(sock=sock, **kwargs)
