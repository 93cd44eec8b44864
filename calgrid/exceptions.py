"""Exception hierarchy for calgrid.

Every failure the engine surfaces to its caller derives from CalGridError so
presentation code can catch one type and show a message to the user.
"""

from typing import Optional


class CalGridError(Exception):
    """Base exception for all calgrid errors."""


class FetchError(CalGridError):
    """Network or HTTP failure while retrieving an iCalendar feed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchAuthError(FetchError):
    """The feed server refused access (HTTP 401/403)."""


class FetchNetworkError(FetchError):
    """Connection-level failure (DNS, refused, reset)."""


class FetchTimeoutError(FetchError):
    """The feed server did not answer within the configured timeout."""


class ParseError(CalGridError):
    """Malformed iCalendar content or malformed stored calendar JSON."""


class SchemaError(CalGridError):
    """A cell (or a slot id) does not have the canonical shape."""


class ValidationError(CalGridError):
    """A calendar record was rejected by the store because its document is unusable."""
