"""
Type definitions for Hrana SDK results.

Provides strongly-typed wrappers around stream responses instead of raw
protocol messages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ProtocolError
from .protocol.values import HostType, Value, decode_value


class StreamState(str, Enum):
    """Lifecycle state of a stream."""

    FRESH = "fresh"  # no baton received yet
    ACTIVE = "active"  # server holds stream state
    CLOSED = "closed"


@dataclass
class StreamErrorInfo:
    """
    Error reported by the server for a request or batch step.

    Attributes:
        message: Server error message
        code: Optional error code (e.g. "SQLITE_CONSTRAINT")
    """

    message: str
    code: str | None = None


@dataclass
class Column:
    """A result column."""

    name: str | None
    decltype: str | None = None


@dataclass
class StatementResult:
    """
    Result of a single statement.

    Attributes:
        columns: Ordered result columns (empty for statements without rows)
        rows: Ordered rows, each an ordered list of protocol values
        affected_row_count: Rows changed by the statement
        last_insert_rowid: Rowid of the last insert, if any
        rows_read: Rows read by the server, when reported
        rows_written: Rows written by the server, when reported
    """

    columns: list[Column] = field(default_factory=list)
    rows: list[list[Value]] = field(default_factory=list)
    affected_row_count: int = 0
    last_insert_rowid: int | None = None
    rows_read: int = 0
    rows_written: int = 0

    @property
    def column_names(self) -> list[str | None]:
        return [col.name for col in self.columns]

    @property
    def has_result_set(self) -> bool:
        """True when the statement produced columns (SELECT-like)."""
        return bool(self.columns)

    def fetchall(self) -> list[tuple[Any, ...]]:
        """Get all rows as tuples of decoded Python values."""
        return [tuple(decode_value(value) for value in row) for row in self.rows]

    def cursor(self) -> "ResultSet":
        """Get a forward-only cursor over the rows."""
        return ResultSet(self)


@dataclass
class BatchResult:
    """
    Result of a batch.

    Step indexes are 0-based. A step appears in at most one of the two
    mappings; steps after the first failure appear in neither.
    """

    step_results: dict[int, StatementResult] = field(default_factory=dict)
    step_errors: dict[int, StreamErrorInfo] = field(default_factory=dict)

    @property
    def is_ok(self) -> bool:
        return not self.step_errors

    def first_error(self) -> tuple[int, StreamErrorInfo] | None:
        """Get the lowest-indexed failed step and its error."""
        if not self.step_errors:
            return None
        step = min(self.step_errors)
        return step, self.step_errors[step]


class ResultSet:
    """
    Forward-only cursor over a StatementResult.

    Getters take a 0-based column index or a column label and read from the
    current row. ``was_null`` reports whether the last value read was NULL.

    Usage:
        rs = result.cursor()
        while rs.next():
            user_id = rs.get_int("id")
            name = rs.get_string("name")
    """

    def __init__(self, result: StatementResult):
        self._result = result
        self._index = -1
        self._row: list[Value] | None = None
        self._labels: dict[str, int] | None = None
        self.was_null = False

    @property
    def columns(self) -> list[Column]:
        return self._result.columns

    def next(self) -> bool:
        """Advance to the next row. Returns False when exhausted."""
        self._index += 1
        if self._index < len(self._result.rows):
            self._row = self._result.rows[self._index]
            return True
        self._row = None
        return False

    def find_column(self, label: str) -> int:
        """Get the 0-based index of a column by label."""
        if self._labels is None:
            self._labels = {}
            for i, col in enumerate(self._result.columns):
                if col.name is not None:
                    self._labels.setdefault(col.name, i)
        if label not in self._labels:
            raise KeyError(f"No such column '{label}'.")
        return self._labels[label]

    def _value(self, column: int | str) -> Value:
        if self._row is None:
            raise ProtocolError("No current row. Call next() first.")
        index = self.find_column(column) if isinstance(column, str) else column
        if index < 0 or index >= len(self._row):
            raise IndexError(f"Column index {index} out of range")
        return self._row[index]

    def _get(self, column: int | str, target: HostType) -> Any:
        value = self._value(column)
        self.was_null = value.is_null
        return decode_value(value, target)

    def get_object(self, column: int | str) -> Any:
        return self._get(column, HostType.ANY)

    def get_byte(self, column: int | str) -> int | None:
        return self._get(column, HostType.INT8)

    def get_short(self, column: int | str) -> int | None:
        return self._get(column, HostType.INT16)

    def get_int(self, column: int | str) -> int | None:
        return self._get(column, HostType.INT32)

    def get_long(self, column: int | str) -> int | None:
        return self._get(column, HostType.INT64)

    def get_float(self, column: int | str) -> float | None:
        return self._get(column, HostType.FLOAT)

    def get_boolean(self, column: int | str) -> bool | None:
        return self._get(column, HostType.BOOL)

    def get_string(self, column: int | str) -> str | None:
        return self._get(column, HostType.TEXT)

    def get_bytes(self, column: int | str) -> bytes | None:
        return self._get(column, HostType.BYTES)
