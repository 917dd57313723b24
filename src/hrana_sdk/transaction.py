"""
Transaction support for Hrana SDK.

Hrana streams have no "set autocommit" request, only plain statements and
an autocommit query. Manual-commit mode is emulated with ``BEGIN``,
``COMMIT`` and ``ROLLBACK`` statements on the stream.
"""

import logging
from typing import Any, Self

from .exceptions import InvalidStateError
from .stream import HranaStream

logger = logging.getLogger(__name__)


class StreamTransaction:
    """
    Autocommit toggle and explicit commit/rollback on top of a stream.

    ``commit()`` and ``rollback()`` immediately open the next transaction,
    so the stream stays in manual-commit mode until autocommit is turned
    back on. The two statements are sent in order as one batch; they are
    not atomic, and if ``BEGIN`` fails the server may be left outside a
    transaction while ``autocommit`` still reads False.

    Usage:
        tx = StreamTransaction(stream)
        await tx.set_autocommit(False)
        await stream.execute("INSERT INTO t(id) VALUES (1)", want_rows=False)
        await tx.commit()

        # Or as a context manager: commit on success, rollback on exception
        async with StreamTransaction(stream):
            await stream.execute("UPDATE t SET n = n + 1", want_rows=False)
    """

    def __init__(self, stream: HranaStream):
        self._stream = stream
        self._autocommit = True

    @property
    def stream(self) -> HranaStream:
        return self._stream

    @property
    def autocommit(self) -> bool:
        """Local autocommit flag. Use ``refresh_autocommit()`` to ask the server."""
        return self._autocommit

    async def set_autocommit(self, enabled: bool) -> None:
        """
        Turn autocommit on or off.

        Turning it off executes ``BEGIN``. Turning it on executes ``COMMIT``,
        so pending work is committed; call ``rollback()`` first to discard
        it. Setting the current value does nothing. On failure the flag is
        left unchanged.
        """
        if enabled == self._autocommit:
            return

        if enabled:
            await self._stream.execute("COMMIT", want_rows=False)
        else:
            await self._stream.execute("BEGIN", want_rows=False)
        self._autocommit = enabled

    async def refresh_autocommit(self) -> bool:
        """Ask the server for the autocommit state and sync the local flag."""
        self._autocommit = await self._stream.get_autocommit()
        return self._autocommit

    async def commit(self) -> None:
        """
        Commit the current transaction and begin the next one.

        Raises:
            InvalidStateError: In autocommit mode
            BatchError: If ``COMMIT`` (step 0) or ``BEGIN`` (step 1) fails
        """
        if self._autocommit:
            raise InvalidStateError("commit not allowed in autocommit mode")
        await self._stream.execute_batch(["COMMIT", "BEGIN"])

    async def rollback(self) -> None:
        """
        Roll back the current transaction and begin the next one.

        Raises:
            InvalidStateError: In autocommit mode
            BatchError: If ``ROLLBACK`` (step 0) or ``BEGIN`` (step 1) fails
        """
        if self._autocommit:
            raise InvalidStateError("rollback not allowed in autocommit mode")
        await self._stream.execute_batch(["ROLLBACK", "BEGIN"])

    # Context manager support

    async def __aenter__(self) -> Self:
        """Leave autocommit mode on context entry."""
        await self.set_autocommit(False)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        """Commit on success, rollback on exception; autocommit is back on afterwards."""
        if exc_type is not None:
            if not self._autocommit:
                logger.debug("Rolling back transaction after %s", exc_type.__name__)
                try:
                    await self._stream.execute("ROLLBACK", want_rows=False)
                except Exception as rollback_error:
                    raise rollback_error from exc_val
                finally:
                    self._autocommit = True
            return False  # Re-raise exception
        await self.set_autocommit(True)
        return False
