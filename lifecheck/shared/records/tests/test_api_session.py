"""Tests for the record store API session."""
import pytest
from unittest.mock import patch

from aiohttp import test_utils, web

from lifecheck.shared.records import (
    ApiConfig,
    ApiSession,
    SourcePayloadError,
    SourceUnavailableError,
)


class TestApiConfig:
    """Tests for ApiConfig dataclass."""

    def test_default_values(self):
        config = ApiConfig()

        assert config.base_url == "http://localhost:3000"
        assert config.token is None
        assert config.timeout_seconds == 30

    def test_from_env(self):
        with patch.dict("os.environ", {
            "LIFECHECK_API_URL": "https://records.example.org",
            "LIFECHECK_API_TOKEN": "tok_123",
            "LIFECHECK_API_TIMEOUT": "5",
        }):
            config = ApiConfig.from_env()

            assert config.base_url == "https://records.example.org"
            assert config.token == "tok_123"
            assert config.timeout_seconds == 5

    def test_from_env_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = ApiConfig.from_env()

            assert config.base_url == "http://localhost:3000"
            assert config.token is None


class TestApiSession:
    """Tests for ApiSession request setup."""

    def test_headers_without_token(self):
        session = ApiSession(ApiConfig())

        assert session.headers == {"Content-Type": "application/json"}

    def test_headers_with_token(self):
        session = ApiSession(ApiConfig(token="tok_123"))

        assert session.headers["Authorization"] == "Bearer tok_123"

    def test_url_joins_base_and_endpoint(self):
        session = ApiSession(ApiConfig(base_url="https://records.example.org/api/"))

        assert session._url("/clients") == "https://records.example.org/api/clients"

    @pytest.mark.asyncio
    async def test_close_without_open_is_noop(self):
        session = ApiSession(ApiConfig())
        await session.close()
        await session.close()

    @pytest.mark.asyncio
    async def test_unreachable_host_raises_source_error(self):
        config = ApiConfig(base_url="http://127.0.0.1:9", timeout_seconds=2)
        async with ApiSession(config) as session:
            with pytest.raises(SourceUnavailableError):
                await session.get_json("/clients")


def record_store_app() -> web.Application:
    """Small stand-in for the PostgREST endpoints."""

    async def clients(request):
        return web.json_response([
            {
                "id": "cl-1",
                "authorization": request.headers.get("Authorization"),
                "order": request.query.get("order"),
            },
        ])

    async def expired(request):
        return web.json_response({"message": "JWT expired"}, status=401)

    async def crashed(request):
        return web.Response(status=500, text="<html>Internal Server Error</html>")

    async def no_message(request):
        return web.json_response({"code": "PGRST000"}, status=503)

    async def malformed(request):
        return web.Response(text='[{"id": ', content_type="application/json")

    async def empty(request):
        return web.Response(status=204)

    app = web.Application()
    app.router.add_get("/clients", clients)
    app.router.add_get("/expired", expired)
    app.router.add_get("/crashed", crashed)
    app.router.add_get("/no_message", no_message)
    app.router.add_get("/malformed", malformed)
    app.router.add_get("/empty", empty)
    return app


@pytest.mark.asyncio
class TestGetJson:
    """Tests for ApiSession.get_json against a live test server."""

    async def request(self, endpoint, params=None):
        async with test_utils.TestServer(record_store_app()) as server:
            config = ApiConfig(
                base_url=f"http://{server.host}:{server.port}",
                token="tok_123",
            )
            async with ApiSession(config) as session:
                return await session.get_json(endpoint, params)

    async def test_decodes_list(self):
        body = await self.request("/clients", {"order": "created_at.desc"})

        assert body == [{
            "id": "cl-1",
            "authorization": "Bearer tok_123",
            "order": "created_at.desc",
        }]

    async def test_error_message_from_body(self):
        with pytest.raises(SourceUnavailableError) as exc_info:
            await self.request("/expired")

        assert exc_info.value.status == 401
        assert "JWT expired" in str(exc_info.value)
        assert "/expired returned 401" in str(exc_info.value)

    async def test_non_json_error_body(self):
        with pytest.raises(SourceUnavailableError) as exc_info:
            await self.request("/crashed")

        assert exc_info.value.status == 500
        assert "Network error" in str(exc_info.value)

    async def test_error_body_without_message(self):
        with pytest.raises(SourceUnavailableError) as exc_info:
            await self.request("/no_message")

        assert exc_info.value.status == 503
        assert "API Error: 503" in str(exc_info.value)

    async def test_malformed_json_raises_payload_error(self):
        with pytest.raises(SourcePayloadError):
            await self.request("/malformed")

    async def test_empty_body_is_none(self):
        assert await self.request("/empty") is None


class TestSourceUnavailableError:
    """Tests for error attributes."""

    def test_status_recorded(self):
        error = SourceUnavailableError("boom", status=401)

        assert error.status == 401
        assert str(error) == "boom"
