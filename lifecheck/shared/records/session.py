"""HTTP session for the PostgREST record store.

Holds the API location and the caller's bearer token explicitly. One
ApiSession is built per logical login session and handed to whatever
performs the fetch; nothing reads credentials from ambient state.
"""
import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .errors import SourcePayloadError, SourceUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiConfig:
    """Record store connection configuration."""
    base_url: str = "http://localhost:3000"
    token: Optional[str] = None
    timeout_seconds: int = 30

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Create config from environment variables.

        Environment variables:
            LIFECHECK_API_URL: PostgREST base URL (default http://localhost:3000)
            LIFECHECK_API_TOKEN: Bearer token of the signed-in counselor
            LIFECHECK_API_TIMEOUT: Request timeout in seconds (default 30)
        """
        return cls(
            base_url=os.getenv("LIFECHECK_API_URL", "http://localhost:3000"),
            token=os.getenv("LIFECHECK_API_TOKEN") or None,
            timeout_seconds=int(os.getenv("LIFECHECK_API_TIMEOUT", "30")),
        )


class ApiSession:
    """Authenticated aiohttp session against the record store.

    Usage:
        async with ApiSession(config) as api:
            rows = await api.get_json("/clients", {"order": "created_at.desc"})
    """

    def __init__(self, config: ApiConfig):
        """Initialize session.

        Args:
            config: Record store configuration
        """
        self.config = config
        self._client: Optional[aiohttp.ClientSession] = None

        logger.info(
            "API_SESSION_CREATED",
            extra={
                "base_url": config.base_url,
                "authenticated": config.token is not None,
            }
        )

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        return headers

    async def __aenter__(self) -> "ApiSession":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    def _url(self, endpoint: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{endpoint}"

    def _ensure_client(self) -> aiohttp.ClientSession:
        if self._client is None or self._client.closed:
            self._client = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            )
        return self._client

    async def get_json(
        self,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET an endpoint and decode the JSON body.

        Args:
            endpoint: Path below the base URL, e.g. "/test_results"
            params: PostgREST query parameters

        Returns:
            Decoded JSON body, None for an empty body

        Raises:
            SourceUnavailableError: On transport errors, timeouts or
                non-2xx responses
        """
        client = self._ensure_client()
        try:
            async with client.get(self._url(endpoint), params=params) as response:
                if response.status >= 400:
                    message = await self._error_message(response)
                    raise SourceUnavailableError(
                        f"{endpoint} returned {response.status}: {message}",
                        status=response.status,
                    )
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "API_REQUEST_FAILED",
                extra={"endpoint": endpoint, "error": str(e)}
            )
            raise SourceUnavailableError(f"{endpoint} unreachable: {e}") from e

        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise SourcePayloadError(f"{endpoint} returned invalid JSON") from e

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return "Network error"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"API Error: {response.status}"

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None and not self._client.closed:
            await self._client.close()
            logger.info("API_SESSION_CLOSED")
        self._client = None
