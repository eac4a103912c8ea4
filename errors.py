# errors.py
"""Error kinds raised by quote sources.

Both are non-fatal: the refresh cycle catches them, reports them once and
leaves the store as it was.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for failures while talking to a quote source."""


class FetchFailed(DashboardError):
    """Non-success HTTP status or a transport-level failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(DashboardError):
    """The response body did not have the expected shape."""
