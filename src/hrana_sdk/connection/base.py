"""
Base Transport Interface for Hrana SDK.

Defines the abstract interface that all pipeline transports must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Self


class BaseTransport(ABC):
    """
    Abstract base class for pipeline transports.

    A transport performs exactly one request/response exchange per ``send``
    call and knows nothing about streams or batons.
    """

    def __init__(self, timeout: float = 30.0):
        """
        Args:
            timeout: Default request timeout in seconds
        """
        self.timeout = timeout
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if the transport is ready to send."""
        return self._connected

    @abstractmethod
    async def connect(self) -> Self:
        """Open underlying resources. Returns self for fluent API."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release underlying resources."""
        ...

    @abstractmethod
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
        POST an encoded pipeline envelope and return the response body.

        Args:
            url: Full pipeline URL
            body: Encoded request envelope
            auth_token: Bearer credential, may be None
            content_type: Media type of the envelope encoding
            timeout: Deadline in seconds, defaults to the transport timeout

        Returns:
            The raw response body

        Raises:
            TransportError: On a non-2xx status or a failed exchange
            TimeoutError: If the deadline expires
        """
        ...

    # Context manager support

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
