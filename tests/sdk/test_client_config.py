"""Tests for configuration, URL handling and the client."""

import json

import httpx
import pytest

from hrana_sdk import Hrana, HranaClient, StreamConfig
from hrana_sdk.config import normalize_url, token_from_url
from hrana_sdk.connection.http import HTTPTransport
from hrana_sdk.exceptions import TransportError
from hrana_sdk.stream import HranaStream
from hrana_sdk.transaction import StreamTransaction
from hrana_sdk.types import StreamState
from tests.sdk.fakes import SentRequest, close_ok, execute_ok, pipeline_response


class TestNormalizeUrl:
    """Tests for normalize_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://localhost:8080", "http://localhost:8080"),
            ("http://localhost:8080/", "http://localhost:8080"),
            ("https://db.example.com", "https://db.example.com"),
            ("libsql://db.example.com", "https://db.example.com"),
            ("libsql://localhost:8080?tls=0", "http://localhost:8080"),
            ("ws://localhost:8080", "http://localhost:8080"),
            ("wss://db.example.com", "https://db.example.com"),
            ("libsql://db.example.com?authToken=abc", "https://db.example.com"),
            ("https://db.example.com/prefix/", "https://db.example.com/prefix"),
        ],
    )
    def test_normalize(self, url: str, expected: str) -> None:
        assert normalize_url(url) == expected

    def test_token_from_url(self) -> None:
        assert token_from_url("libsql://db.example.com?authToken=abc") == "abc"
        assert token_from_url("libsql://db.example.com?jwt=xyz") == "xyz"
        assert token_from_url("libsql://db.example.com") is None


class TestStreamConfig:
    """Tests for StreamConfig."""

    def test_defaults(self) -> None:
        config = StreamConfig(url="http://localhost:8080")

        assert config.auth_token is None
        assert config.protocol == "protobuf"
        assert config.timeout == 30.0
        assert config.base_url == "http://localhost:8080"

    def test_invalid_protocol(self) -> None:
        with pytest.raises(ValueError, match="Invalid protocol"):
            StreamConfig(url="http://localhost:8080", protocol="cbor")  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        config = StreamConfig(url="http://localhost:8080")
        with pytest.raises(AttributeError):
            config.url = "http://other"  # type: ignore[misc]

    def test_from_url_takes_token(self) -> None:
        config = StreamConfig.from_url("libsql://db.example.com?authToken=abc")
        assert config.auth_token == "abc"

    def test_from_url_explicit_token_wins(self) -> None:
        config = StreamConfig.from_url("libsql://db.example.com?authToken=abc", auth_token="explicit")
        assert config.auth_token == "explicit"

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HRANA_URL", "http://localhost:8080")
        monkeypatch.setenv("HRANA_AUTH_TOKEN", "tok")
        monkeypatch.setenv("HRANA_PROTOCOL", "json")
        monkeypatch.setenv("HRANA_TIMEOUT", "2.5")

        config = StreamConfig.from_env()

        assert config == StreamConfig(url="http://localhost:8080", auth_token="tok", protocol="json", timeout=2.5)

    def test_from_env_custom_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TURSO_URL", "libsql://db.example.com")
        monkeypatch.delenv("TURSO_AUTH_TOKEN", raising=False)
        monkeypatch.delenv("TURSO_PROTOCOL", raising=False)
        monkeypatch.delenv("TURSO_TIMEOUT", raising=False)

        config = StreamConfig.from_env("TURSO_")

        assert config.url == "libsql://db.example.com"
        assert config.auth_token is None
        assert config.protocol == "protobuf"

    def test_from_env_requires_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HRANA_URL", raising=False)

        with pytest.raises(ValueError, match="HRANA_URL"):
            StreamConfig.from_env()


class TestHranaClient:
    """Tests for HranaClient."""

    def test_init(self) -> None:
        client = HranaClient("libsql://db.example.com?authToken=abc")

        assert client.url == "https://db.example.com"
        assert client.pipeline_url == "https://db.example.com/v3-protobuf/pipeline"
        assert client.auth_token == "abc"
        assert isinstance(client.transport, HTTPTransport)
        assert not client.is_connected

    def test_json_pipeline_url(self) -> None:
        client = HranaClient("http://localhost:8080/", protocol="json")
        assert client.pipeline_url == "http://localhost:8080/v3/pipeline"

    def test_from_config(self) -> None:
        config = StreamConfig(url="http://localhost:8080", auth_token="tok", timeout=3.0)

        client = HranaClient.from_config(config)

        assert client.auth_token == "tok"
        assert client.timeout == 3.0
        assert client.transport.timeout == 3.0

    def test_factory(self) -> None:
        client = Hrana.http("http://localhost:8080", auth_token="tok", protocol="json")

        assert isinstance(client, HranaClient)
        assert client.protocol == "json"

    def test_factory_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HRANA_URL", "http://localhost:8080")
        monkeypatch.delenv("HRANA_AUTH_TOKEN", raising=False)
        monkeypatch.delenv("HRANA_PROTOCOL", raising=False)
        monkeypatch.delenv("HRANA_TIMEOUT", raising=False)

        client = Hrana.from_env()

        assert client.pipeline_url == "http://localhost:8080/v3-protobuf/pipeline"

    def test_stream_and_transaction(self) -> None:
        client = HranaClient("http://localhost:8080")

        stream = client.stream(timeout=1.0)

        assert isinstance(stream, HranaStream)
        assert stream.state == StreamState.FRESH
        assert stream.url == client.pipeline_url
        assert stream.timeout == 1.0
        assert isinstance(client.transaction(stream), StreamTransaction)

    @pytest.mark.asyncio
    async def test_protobuf_end_to_end(self) -> None:
        """A full stream session over the real HTTP transport with a mock server."""
        responses = [
            pipeline_response(execute_ok(columns=["n"], rows=[[1]]), baton="b1"),
            pipeline_response(close_ok()),
        ]
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=responses.pop(0))

        async with HranaClient(
            "http://localhost:8080", auth_token="tok", http_transport=httpx.MockTransport(handler)
        ) as client:
            async with client.stream() as stream:
                result = await stream.execute("SELECT 1 AS n")

        assert result.fetchall() == [(1,)]
        assert [str(r.url) for r in seen] == ["http://localhost:8080/v3-protobuf/pipeline"] * 2
        assert all(r.headers["Authorization"] == "Bearer tok" for r in seen)
        second = SentRequest("", seen[1].content, None, "", None).decoded()
        assert second.baton == "b1"
        assert second.requests[0].WhichOneof("request") == "close"
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_json_end_to_end(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "baton": "j1",
                    "base_url": None,
                    "results": [{"type": "ok", "response": {"type": "get_autocommit", "is_autocommit": True}}],
                },
            )

        async with HranaClient(
            "http://localhost:8080", protocol="json", http_transport=httpx.MockTransport(handler)
        ) as client:
            stream = client.stream()
            assert await stream.get_autocommit() is True

        assert bodies == [{"baton": None, "requests": [{"type": "get_autocommit"}]}]
        assert stream.baton == "j1"

    @pytest.mark.asyncio
    async def test_http_error_surfaces_as_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="unauthorized")

        async with HranaClient("http://localhost:8080", http_transport=httpx.MockTransport(handler)) as client:
            stream = client.stream()
            with pytest.raises(TransportError) as exc_info:
                await stream.execute("SELECT 1")

        assert exc_info.value.status_code == 401
        assert stream.state == StreamState.FRESH
