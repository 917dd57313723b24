"""
Hrana Pipeline Messages.

A pipeline is one HTTP exchange carrying an ordered list of stream requests
and returning one result per request, in the same order. The server hands
out a baton with each response; the next pipeline on the same stream must
send it back.

Request kinds:
- execute: run one statement
- batch: run statements in order, stopping at the first failing step
- get_autocommit: ask whether the stream is outside an explicit transaction
- close: drop the server-side stream
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Sequence, Union

from .values import Value, encode_value

if TYPE_CHECKING:
    from ..types import BatchResult, StatementResult, StreamErrorInfo


@dataclass
class Stmt:
    """
    A single SQL statement with its bound arguments.

    Attributes:
        sql: SQL text (exactly one statement)
        args: Positional arguments for ``?`` placeholders
        named_args: Named arguments, keys include the prefix (":", "@" or "$")
        want_rows: Whether the server should return row data
    """

    sql: str
    args: list[Value] = field(default_factory=list)
    named_args: dict[str, Value] = field(default_factory=dict)
    want_rows: bool = True

    @classmethod
    def build(
        cls,
        sql: str,
        params: Sequence[Any] | Mapping[str, Any] | None = None,
        want_rows: bool = True,
    ) -> Stmt:
        """
        Create a statement, encoding Python parameters.

        A mapping binds named parameters; a bare name gets a ":" prefix.
        Any other sequence binds positional parameters.
        """
        stmt = cls(sql=sql, want_rows=want_rows)
        if params is None:
            return stmt
        if isinstance(params, Mapping):
            for name, value in params.items():
                if not isinstance(name, str):
                    raise TypeError(f"Named parameter keys must be str, not {type(name).__name__}")
                if name[:1] not in (":", "@", "$"):
                    name = f":{name}"
                stmt.named_args[name] = encode_value(value)
        elif isinstance(params, (str, bytes, bytearray)):
            raise TypeError("params must be a sequence or a mapping, not a scalar")
        else:
            stmt.args = [encode_value(value) for value in params]
        return stmt


# Requests


@dataclass
class ExecuteStreamRequest:
    stmt: Stmt


@dataclass
class BatchStreamRequest:
    """Unconditional steps, executed in order."""

    steps: list[Stmt] = field(default_factory=list)


@dataclass
class GetAutocommitStreamRequest:
    pass


@dataclass
class CloseStreamRequest:
    pass


StreamRequest = Union[
    ExecuteStreamRequest,
    BatchStreamRequest,
    GetAutocommitStreamRequest,
    CloseStreamRequest,
]


# Responses


@dataclass
class ExecuteStreamResponse:
    result: StatementResult


@dataclass
class BatchStreamResponse:
    result: BatchResult


@dataclass
class GetAutocommitStreamResponse:
    is_autocommit: bool


@dataclass
class CloseStreamResponse:
    pass


StreamResponse = Union[
    ExecuteStreamResponse,
    BatchStreamResponse,
    GetAutocommitStreamResponse,
    CloseStreamResponse,
]


# Per-request outcomes


@dataclass
class StreamOk:
    response: StreamResponse


@dataclass
class StreamFailure:
    error: StreamErrorInfo


StreamResult = Union[StreamOk, StreamFailure]


# Envelopes


@dataclass
class PipelineRequest:
    """
    Request envelope.

    Attributes:
        requests: Ordered stream requests
        baton: Baton from the previous response on this stream, if any
    """

    requests: list[StreamRequest] = field(default_factory=list)
    baton: str | None = None


@dataclass
class PipelineResponse:
    """
    Response envelope.

    Attributes:
        results: One outcome per request, in request order
        baton: New baton for the next request on this stream
        base_url: New base URL for the rest of this stream's requests
    """

    results: list[StreamResult] = field(default_factory=list)
    baton: str | None = None
    base_url: str | None = None


class PipelineCodec(ABC):
    """
    Wire encoding for pipeline envelopes.

    Attributes:
        name: Protocol name ("protobuf" or "json")
        content_type: Media type for Content-Type and Accept headers
        path_suffix: Pipeline path appended to the base URL
    """

    name: str
    content_type: str
    path_suffix: str

    @abstractmethod
    def encode_request(self, request: PipelineRequest) -> bytes:
        """Serialize a request envelope."""
        ...

    @abstractmethod
    def decode_response(self, data: bytes) -> PipelineResponse:
        """
        Parse a response envelope.

        Raises:
            ProtocolError: If the bytes are not a valid response envelope
        """
        ...
