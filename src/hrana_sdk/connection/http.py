"""
HTTP Transport Implementation for Hrana SDK.

Posts pipeline envelopes over HTTP using httpx. Each call is one independent
request; stream state (baton, base URL) is kept by ``HranaStream``.
"""

import logging
from typing import Self

import httpx

from ..exceptions import TimeoutError, TransportError
from .base import BaseTransport

logger = logging.getLogger(__name__)


class HTTPTransport(BaseTransport):
    """
    httpx-based pipeline transport.

    The underlying ``httpx.AsyncClient`` is shared by every stream created
    from the same client; streams never share baton state.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HTTP transport.

        Args:
            timeout: Default request timeout in seconds
            transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests)
        """
        super().__init__(timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @staticmethod
    def headers(auth_token: str | None, content_type: str) -> dict[str, str]:
        """Build request headers for a pipeline call."""
        return {
            "Authorization": f"Bearer {auth_token or ''}",
            "Content-Type": content_type,
            "Accept": content_type,
        }

    async def connect(self) -> Self:
        """Create the HTTP client. Returns self for fluent API."""
        if self._connected:
            return self

        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        self._connected = True
        return self

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._connected = False

    async def send(
        self,
        url: str,
        body: bytes,
        *,
        auth_token: str | None,
        content_type: str,
        timeout: float | None = None,
    ) -> bytes:
        """
        POST a pipeline envelope.

        Raises:
            TransportError: If not connected, the request fails or the status is not 2xx
            TimeoutError: If the request exceeds its deadline
        """
        if not self._client:
            raise TransportError("Not connected. Call connect() first.")

        try:
            response = await self._client.post(
                url,
                content=body,
                headers=self.headers(auth_token, content_type),
                timeout=timeout if timeout is not None else self.timeout,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out: {e}")
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}")

        if not response.is_success:
            logger.debug("Pipeline POST %s returned HTTP %s", url, response.status_code)
            raise TransportError(
                f"HTTP error: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content
