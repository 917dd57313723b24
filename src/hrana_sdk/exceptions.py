"""
Hrana SDK Exceptions.

Custom exception hierarchy for the SDK.
"""

from typing import Any


class HranaError(Exception):
    """Base exception for all Hrana SDK errors."""

    def __init__(self, message: str, code: str | int | None = None):
        self.message = message
        self.code = code
        super().__init__(message)


class TransportError(HranaError):
    """Raised when the HTTP exchange fails (status, connection or timeout)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, status_code)


class TimeoutError(TransportError):
    """Raised when a pipeline request exceeds its deadline.

    The server may or may not have executed the statement.
    """

    pass


class ProtocolError(HranaError):
    """Raised when the server response has an unexpected shape."""

    pass


class StatementError(HranaError):
    """Raised when the server reports an error executing a statement."""

    def __init__(self, message: str, sql: str | None = None, code: str | int | None = None):
        self.sql = sql
        super().__init__(message, code)


class BatchError(StatementError):
    """Raised when a batch step fails.

    ``step`` is the lowest failing step index; that step and every later
    step did not run.
    """

    def __init__(
        self,
        message: str,
        step: int,
        sql: str | None = None,
        code: str | int | None = None,
    ):
        self.step = step
        super().__init__(message, sql, code)


class ValueCodecError(HranaError):
    """Base for local value conversion failures."""

    pass


class UnsupportedValueType(ValueCodecError):
    """Raised when a Python value has no protocol representation."""

    def __init__(self, value_type: type):
        self.value_type = value_type
        super().__init__(f"Unsupported value type: {value_type.__name__}")


class ValueOutOfRange(ValueCodecError):
    """Raised when a protocol value does not fit the requested host type."""

    def __init__(self, value: Any, target: str):
        self.value = value
        self.target = target
        super().__init__(f"Value ({value!r}) out of range for {target}")


class InvalidStateError(HranaError):
    """Raised when an operation is not valid in the current state."""

    pass
