"""
Error taxonomy for the relay.

Everything a single conversation turn can fail with derives from RelayError,
so handlers can catch one type, log it, and keep the bot running.
ConfigError is separate: it is raised at startup and is fatal.
"""
from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base class for errors that end one conversation turn."""


class BackendUnavailable(RelayError):
    """The backend could not be reached or answered with a 5xx."""


class BackendRejected(RelayError):
    """The backend refused the request (4xx) or sent a malformed body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RunFailed(RelayError):
    """The run ended in a failed or expired state, or produced nothing usable."""


class RunTimeout(RelayError):
    """The run did not complete within the deadline or the poll budget."""


class TransportError(RelayError):
    """The chat platform failed a request made on behalf of this turn."""


class TransportSendFailed(TransportError):
    """Delivering the reply to the chat failed."""


class ConfigError(Exception):
    """Required configuration is missing or invalid."""
