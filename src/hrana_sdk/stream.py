"""
Hrana HTTP Stream.

A stream is a logical, stateful SQL session carried over stateless HTTP
pipeline requests. The server issues a baton with each response; the next
request on the stream must carry it so the server can find the stream's
state. The server may also return a new base URL, which the stream then
uses for every following request.

State machine:
    FRESH  -- first baton received -->  ACTIVE
    FRESH  -- close() (no network) -->  CLOSED
    ACTIVE -- close() ---------------->  CLOSED
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Self

from .connection.base import BaseTransport
from .exceptions import BatchError, InvalidStateError, ProtocolError, StatementError
from .protocol import get_codec
from .protocol.pipeline import (
    BatchStreamRequest,
    BatchStreamResponse,
    CloseStreamRequest,
    ExecuteStreamRequest,
    ExecuteStreamResponse,
    GetAutocommitStreamRequest,
    GetAutocommitStreamResponse,
    PipelineCodec,
    PipelineRequest,
    Stmt,
    StreamFailure,
    StreamRequest,
    StreamResult,
)
from .types import BatchResult, StatementResult, StreamState

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Mapping[str, Any]


class HranaStream:
    """
    A single Hrana stream (one server-side SQL session).

    Every operation is exactly one HTTP round trip. Operations on the same
    stream are serialized by an internal lock so each request carries the
    baton of the response before it. Separate streams share no state and
    can be used concurrently.

    Usage:
        async with client.stream() as stream:
            await stream.execute("INSERT INTO t(id) VALUES (?)", [1], want_rows=False)
            result = await stream.execute("SELECT id FROM t")
    """

    def __init__(
        self,
        transport: BaseTransport,
        pipeline_url: str,
        auth_token: str | None = None,
        codec: PipelineCodec | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize a stream.

        Args:
            transport: Transport used for every pipeline request
            pipeline_url: Full pipeline URL (base URL + codec path suffix)
            auth_token: Optional bearer credential, fixed for the stream's lifetime
            codec: Wire encoding, defaults to Protobuf
            timeout: Default per-request timeout in seconds (None uses the transport's)
        """
        self._transport = transport
        self._url = pipeline_url
        self._auth_token = auth_token
        self._codec = codec or get_codec("protobuf")
        self.timeout = timeout
        self._baton: str | None = None
        self._state = StreamState.FRESH
        self._lock = asyncio.Lock()

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == StreamState.CLOSED

    @property
    def url(self) -> str:
        """Pipeline URL the next request will be sent to."""
        return self._url

    @property
    def baton(self) -> str | None:
        """Baton the next request will carry."""
        return self._baton

    # Context manager support

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Pipeline plumbing

    def _ensure_open(self) -> None:
        if self._state == StreamState.CLOSED:
            raise InvalidStateError("Stream is closed")

    async def _pipeline(self, requests: list[StreamRequest], timeout: float | None) -> list[StreamResult]:
        """
        Send one pipeline and apply the returned baton and base URL.

        Must be called with ``self._lock`` held.
        """
        body = self._codec.encode_request(PipelineRequest(requests=requests, baton=self._baton))
        logger.debug("Sending pipeline with %d request(s) to %s", len(requests), self._url)

        data = await self._transport.send(
            self._url,
            body,
            auth_token=self._auth_token,
            content_type=self._codec.content_type,
            timeout=timeout if timeout is not None else self.timeout,
        )
        response = self._codec.decode_response(data)

        if response.baton is not None:
            if self._state == StreamState.FRESH:
                logger.debug("Stream received its first baton")
                self._state = StreamState.ACTIVE
            self._baton = response.baton
        if response.base_url is not None:
            url = response.base_url.rstrip("/") + self._codec.path_suffix
            if url != self._url:
                logger.debug("Stream redirected to %s", url)
            self._url = url

        if len(response.results) != len(requests):
            raise ProtocolError(f"Expected {len(requests)} result(s) in pipeline response, got {len(response.results)}")
        return response.results

    async def _request(self, request: StreamRequest, timeout: float | None) -> StreamResult:
        """Send a single request on this stream and return its outcome."""
        async with self._lock:
            self._ensure_open()
            results = await self._pipeline([request], timeout)
        return results[0]

    # Operations

    async def execute(
        self,
        sql: str,
        params: Params | None = None,
        want_rows: bool = True,
        timeout: float | None = None,
    ) -> StatementResult:
        """
        Execute a single SQL statement.

        Args:
            sql: SQL text containing exactly one statement
            params: Positional values for ``?`` placeholders, or a mapping of
                named values (``:name``, ``@name``, ``$name``; bare names get ``:``)
            want_rows: Whether to return row data
            timeout: Deadline in seconds for this call

        Returns:
            The statement result

        Raises:
            StatementError: If the server rejects the statement
            UnsupportedValueType, ValueOutOfRange: If a parameter cannot be encoded
            TransportError, ProtocolError, InvalidStateError
        """
        stmt = Stmt.build(sql, params, want_rows)
        result = await self._request(ExecuteStreamRequest(stmt=stmt), timeout)

        if isinstance(result, StreamFailure):
            raise StatementError(result.error.message, sql=sql, code=result.error.code)
        if not isinstance(result.response, ExecuteStreamResponse):
            raise ProtocolError(f"Expected execute response, got {type(result.response).__name__}")
        return result.response.result

    async def execute_batch(
        self,
        statements: Sequence[str | Stmt],
        timeout: float | None = None,
    ) -> BatchResult:
        """
        Execute statements in order as one batch.

        Steps are unconditional and do not return rows. Execution stops at the
        first failing step.

        Args:
            statements: SQL strings (or prepared ``Stmt`` objects), one statement each
            timeout: Deadline in seconds for this call

        Returns:
            BatchResult with a result for every step

        Raises:
            BatchError: For the lowest failing step; it and later steps did not run
            StatementError: If the server rejects the batch as a whole
            TransportError, ProtocolError, InvalidStateError
        """
        self._ensure_open()
        if not statements:
            return BatchResult()

        steps = [
            Stmt(sql=s, want_rows=False) if isinstance(s, str) else s
            for s in statements
        ]
        result = await self._request(BatchStreamRequest(steps=steps), timeout)

        if isinstance(result, StreamFailure):
            raise StatementError(result.error.message, code=result.error.code)
        if not isinstance(result.response, BatchStreamResponse):
            raise ProtocolError(f"Expected batch response, got {type(result.response).__name__}")

        batch = result.response.result
        failed = batch.first_error()
        if failed is not None:
            step, error = failed
            raise BatchError(
                error.message or f"Batch step {step} failed",
                step=step,
                sql=steps[step].sql if step < len(steps) else None,
                code=error.code,
            )
        if len(batch.step_results) != len(steps):
            raise ProtocolError(f"Batch of {len(steps)} step(s) returned {len(batch.step_results)} result(s)")
        return batch

    async def get_autocommit(self, timeout: float | None = None) -> bool:
        """
        Ask the server whether the stream is in autocommit mode.

        Returns:
            True when no explicit transaction is open

        Raises:
            ProtocolError: If the response is not an autocommit response
            StatementError: If the server reports an error
        """
        result = await self._request(GetAutocommitStreamRequest(), timeout)

        if isinstance(result, StreamFailure):
            raise StatementError(result.error.message, code=result.error.code)
        if not isinstance(result.response, GetAutocommitStreamResponse):
            raise ProtocolError("No get_autocommit response returned by server")
        return result.response.is_autocommit

    async def close(self, timeout: float | None = None) -> None:
        """
        Close the stream.

        A stream that never received a baton has no server-side state, so it
        is closed locally without a request. Otherwise a close request is
        sent; the stream is closed afterwards even if that request fails.
        Closing a closed stream does nothing.
        """
        async with self._lock:
            if self._state == StreamState.CLOSED:
                return
            if self._baton is None:
                self._state = StreamState.CLOSED
                return

            try:
                results = await self._pipeline([CloseStreamRequest()], timeout)
            finally:
                self._state = StreamState.CLOSED
                self._baton = None

        if isinstance(results[0], StreamFailure):
            error = results[0].error
            raise StatementError(error.message, code=error.code)
