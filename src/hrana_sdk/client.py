"""
Hrana HTTP Client.

Owns the HTTP transport and hands out streams bound to one database.
"""

import logging
from typing import Any, Self

import httpx

from .config import StreamConfig, WireProtocol, normalize_url, token_from_url
from .connection.base import BaseTransport
from .connection.http import HTTPTransport
from .protocol import get_codec
from .stream import HranaStream
from .transaction import StreamTransaction

logger = logging.getLogger(__name__)


class HranaClient:
    """
    Client for a Hrana-over-HTTP database (libSQL / sqld / Turso).

    The client itself is stateless; every ``stream()`` call creates an
    independent logical session that keeps its own baton and base URL.

    Usage:
        async with HranaClient("libsql://db.example.com", auth_token=jwt) as client:
            async with client.stream() as stream:
                result = await stream.execute("SELECT 1")
    """

    def __init__(
        self,
        url: str,
        auth_token: str | None = None,
        protocol: WireProtocol = "protobuf",
        timeout: float = 30.0,
        transport: BaseTransport | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            url: Database base URL (http, https, ws, wss or libsql scheme)
            auth_token: Optional bearer credential sent with every request;
                taken from an ``authToken`` query parameter when omitted
            protocol: Wire encoding, "protobuf" (default) or "json"
            timeout: Default request timeout in seconds
            transport: Custom pipeline transport (defaults to ``HTTPTransport``)
            http_transport: httpx transport for the default ``HTTPTransport``
        """
        self.codec = get_codec(protocol)
        self.url = normalize_url(url)
        self.pipeline_url = self.url + self.codec.path_suffix
        self.auth_token = auth_token if auth_token is not None else token_from_url(url)
        self.protocol = protocol
        self.timeout = timeout
        self.transport = transport or HTTPTransport(timeout=timeout, transport=http_transport)

    @classmethod
    def from_config(cls, config: StreamConfig, **kwargs: Any) -> "HranaClient":
        """Create a client from a ``StreamConfig``."""
        return cls(
            config.url,
            auth_token=config.auth_token,
            protocol=config.protocol,
            timeout=config.timeout,
            **kwargs,
        )

    @property
    def is_connected(self) -> bool:
        return self.transport.is_connected

    async def connect(self) -> Self:
        """Open the transport. Returns self for fluent API."""
        await self.transport.connect()
        return self

    async def close(self) -> None:
        """Close the transport. Open streams are not closed server-side."""
        await self.transport.close()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def stream(self, timeout: float | None = None) -> HranaStream:
        """
        Create a new stream.

        No request is made until the first operation on the stream.

        Args:
            timeout: Default per-request timeout for this stream
        """
        logger.debug("Opening stream on %s", self.pipeline_url)
        return HranaStream(
            self.transport,
            self.pipeline_url,
            auth_token=self.auth_token,
            codec=self.codec,
            timeout=timeout,
        )

    def transaction(self, stream: HranaStream) -> StreamTransaction:
        """Create a transaction controller for a stream of this client."""
        return StreamTransaction(stream)
