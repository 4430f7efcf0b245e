# flake8: noqa
from .base import (NegotiationOutcome, Negotiator, OutcomeKind,
                   transport_errors)
from .attempt import AttemptState, HTTPTunnelAttempt
from .http import HTTPNegotiator
