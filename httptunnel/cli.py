import argparse
import asyncio
import logging
import socket
from typing import Optional

from httptunnel.defaults import (CONNECT_TIMEOUT, LOG_DATE_FORMAT, LOG_FORMAT,
                                 PROXY_URL)
from httptunnel.errors import InvalidArgument, TunnelError
from httptunnel.negotiator import NegotiationOutcome, Negotiator
from httptunnel.protocol import NegotiationRequest
from httptunnel.transport import AsyncSocketTransport, SocketTransport
from httptunnel.utils.url import URL

logger = logging.getLogger('httptunnel')


def parse_target(target: str) -> tuple[str, int]:
    host, sep, port = target.rpartition(':')
    if not sep or not port.isdigit():
        raise InvalidArgument('invalid target: {}'.format(target))
    req = NegotiationRequest(host=host, port=int(port))
    return req.host, req.port


def open_tunnel(
    negotiator: Negotiator,
    proxy_url: URL,
    addr: tuple[str, int],
    timeout: float,
) -> NegotiationOutcome:
    with socket.create_connection(proxy_url.addr, timeout=timeout) as sock:
        return negotiator.try_negotiate(SocketTransport(sock), addr)


async def open_tunnel_async(
    negotiator: Negotiator,
    proxy_url: URL,
    addr: tuple[str, int],
    timeout: float,
) -> NegotiationOutcome:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(
        proxy_url.host,
        proxy_url.port,
        type=socket.SOCK_STREAM,
    )
    family, _, _, _, sockaddr = infos[0]
    transport = AsyncSocketTransport.from_family(family)
    try:
        return await asyncio.wait_for(
            negotiator.negotiate_async(transport, addr, proxy_addr=sockaddr),
            timeout,
        )
    finally:
        transport.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='httptunnel',
        description='Open an HTTP CONNECT tunnel through a proxy.',
    )
    parser.add_argument('-d', '--debug', action='store_true')
    parser.add_argument('-p', '--proxy-url', default=PROXY_URL)
    parser.add_argument('-t', '--token', default=None)
    parser.add_argument('-T', '--timeout', type=float, default=CONNECT_TIMEOUT)
    parser.add_argument('-a', '--use-async', action='store_true')
    parser.add_argument('target', help='host:port')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level='DEBUG' if args.debug else 'INFO',
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )

    try:
        proxy_url = URL.from_str(args.proxy_url,
                                 fallback=URL.from_str(PROXY_URL))
        negotiator = Negotiator.from_url(proxy_url, token=args.token)
        addr = parse_target(args.target)
        if args.use_async:
            outcome = asyncio.run(
                open_tunnel_async(negotiator, proxy_url, addr, args.timeout))
        else:
            outcome = open_tunnel(negotiator, proxy_url, addr, args.timeout)
        outcome.unwrap()
    except (TunnelError, ValueError, OSError, asyncio.TimeoutError) as e:
        logger.error('cannot open tunnel to %s: %s', args.target, e)
        return 1
    logger.info('tunnel ready: %s via %s', args.target, proxy_url)
    return 0
