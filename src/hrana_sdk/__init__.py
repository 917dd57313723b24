"""
Hrana SDK - A Python client for the Hrana stream protocol over HTTP.

Hrana is the protocol spoken by libSQL servers (sqld, Turso). A stream is a
stateful SQL session carried over stateless HTTP requests: the server hands
out a baton with every response and the client sends it back with the next
request.

Supports:
- Protobuf (default) and JSON pipeline encodings
- Single statements with positional or named parameters
- Batches that stop at the first failing step
- Autocommit queries and emulated manual-commit transactions
"""

from typing import Any

from .exceptions import (
    HranaError,
    TransportError,
    TimeoutError,
    ProtocolError,
    StatementError,
    BatchError,
    ValueCodecError,
    UnsupportedValueType,
    ValueOutOfRange,
    InvalidStateError,
)
from .types import (
    StreamState,
    StreamErrorInfo,
    Column,
    StatementResult,
    BatchResult,
    ResultSet,
)
from .protocol import (
    HostType,
    Value,
    ValueType,
    Stmt,
    WireProtocol,
    decode_value,
    encode_value,
    get_codec,
)
from .connection.base import BaseTransport
from .connection.http import HTTPTransport
from .stream import HranaStream
from .transaction import StreamTransaction
from .config import StreamConfig
from .client import HranaClient

__version__ = "0.1.0"
__all__ = [
    # Client and streams
    "Hrana",
    "HranaClient",
    "HranaStream",
    "StreamTransaction",
    "StreamConfig",
    # Transports
    "BaseTransport",
    "HTTPTransport",
    # Values
    "HostType",
    "Value",
    "ValueType",
    "Stmt",
    "WireProtocol",
    "decode_value",
    "encode_value",
    "get_codec",
    # Results
    "StreamState",
    "StreamErrorInfo",
    "Column",
    "StatementResult",
    "BatchResult",
    "ResultSet",
    # Exceptions
    "HranaError",
    "TransportError",
    "TimeoutError",
    "ProtocolError",
    "StatementError",
    "BatchError",
    "ValueCodecError",
    "UnsupportedValueType",
    "ValueOutOfRange",
    "InvalidStateError",
]


class Hrana:
    """
    Factory class for creating Hrana clients.

    Usage:
        # Protobuf pipeline (default)
        async with Hrana.http("libsql://db.example.com", auth_token=jwt) as client:
            async with client.stream() as stream:
                result = await stream.execute("SELECT * FROM users WHERE id = ?", [1])

        # JSON pipeline (for debugging with plain HTTP tooling)
        async with Hrana.http("http://localhost:8080", protocol="json") as client:
            ...

        # From HRANA_URL / HRANA_AUTH_TOKEN / HRANA_PROTOCOL / HRANA_TIMEOUT
        async with Hrana.from_env() as client:
            ...
    """

    @staticmethod
    def http(url: str, auth_token: str | None = None, **kwargs: Any) -> HranaClient:
        """Create an HTTP client."""
        return HranaClient(url, auth_token=auth_token, **kwargs)

    @staticmethod
    def from_env(prefix: str = "HRANA_", **kwargs: Any) -> HranaClient:
        """Create an HTTP client configured from environment variables."""
        return HranaClient.from_config(StreamConfig.from_env(prefix), **kwargs)
