from typing import Optional


class TunnelError(Exception):
    pass


class InvalidArgument(ValueError, TunnelError):
    """Bad target host or port, raised before any I/O."""


class ProtocolError(RuntimeError, TunnelError):
    breadcrumb: list[str]
    status: Optional[int]

    def __init__(self, *breadcrumb: str, status: Optional[int] = None):
        super().__init__('protocol error: ' + '/'.join(breadcrumb))
        self.breadcrumb = list(breadcrumb)
        self.status = status


class TransportError(ConnectionError, TunnelError):
    cause: Optional[BaseException]

    def __init__(self, reason: str, cause: Optional[BaseException] = None):
        if cause is not None:
            reason = '{}: {}'.format(reason, cause)
        super().__init__('transport error: ' + reason)
        self.cause = cause
