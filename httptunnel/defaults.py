PROXY_URL = 'http://localhost:8080'
CONNECT_TIMEOUT = 10.0

HOST_MAX_LENGTH = 255
PORT_MIN = 1
PORT_MAX = 65535

AUTH_HEADER = 'Authentication'
AUTH_SCHEME = 'XAuth'

# 'HTTP/1.1 200' plus the separator after the status code.
STATUS_PREFIX_SIZE = 13

LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'
LOG_DATE_FORMAT = '%y-%m-%d %H:%M:%S'
