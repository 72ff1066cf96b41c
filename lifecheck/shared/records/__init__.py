"""Read-only access to the practice's record store.

Provides the RecordSource contract, a PostgREST implementation over
aiohttp and the explicit API session carrying the caller's credentials.
"""

from .errors import (
    SourceError,
    SourceUnavailableError,
    SourcePayloadError,
)
from .session import (
    ApiConfig,
    ApiSession,
)
from .source import (
    RecordSource,
    PostgRESTRecordSource,
)

__all__ = [
    "SourceError",
    "SourceUnavailableError",
    "SourcePayloadError",
    "ApiConfig",
    "ApiSession",
    "RecordSource",
    "PostgRESTRecordSource",
]
