"""Record store error hierarchy."""
from typing import Optional


class SourceError(Exception):
    """Base exception for record store failures."""
    pass


class SourceUnavailableError(SourceError):
    """The record store could not be reached or answered with an error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SourcePayloadError(SourceError):
    """The record store answered with a payload of the wrong shape."""
    pass
