# flake8: noqa
from .http import (HeaderScanner, NegotiationRequest, format_connect,
                   next_state, validate_status)
