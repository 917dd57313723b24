"""
Value Codec for the Hrana Protocol.

Maps Python scalars to the protocol's tagged value union and back.

Protocol value tags:
- NULL: absent value
- INTEGER: signed 64-bit integer
- FLOAT: IEEE 754 double
- TEXT: UTF-8 string
- BLOB: byte string

SQLite has no boolean type, so ``bool`` is sent as INTEGER 0/1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..exceptions import UnsupportedValueType, ValueOutOfRange

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ValueType(str, Enum):
    """Tag of a protocol value."""

    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BLOB = "blob"


class HostType(str, Enum):
    """Python-side types a protocol value can be decoded into."""

    ANY = "any"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    BOOL = "bool"
    TEXT = "text"
    BYTES = "bytes"


_INTEGER_RANGES: dict[HostType, tuple[int, int]] = {
    HostType.INT8: (-(2**7), 2**7 - 1),
    HostType.INT16: (-(2**15), 2**15 - 1),
    HostType.INT32: (-(2**31), 2**31 - 1),
    HostType.INT64: (INT64_MIN, INT64_MAX),
}


@dataclass(frozen=True)
class Value:
    """
    A tagged protocol value.

    Attributes:
        type: The value tag
        value: The payload (None, int, float, str or bytes)
    """

    type: ValueType
    value: Any = None

    @classmethod
    def null(cls) -> Value:
        return cls(ValueType.NULL)

    @property
    def is_null(self) -> bool:
        return self.type == ValueType.NULL


def encode_value(obj: Any) -> Value:
    """
    Encode a Python value to a protocol value.

    Args:
        obj: None, bool, int, float, str, bytes, bytearray, memoryview or Value

    Returns:
        The tagged protocol value

    Raises:
        UnsupportedValueType: For any other type
        ValueOutOfRange: For integers outside the signed 64-bit range
    """
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Value.null()
    # bool is a subclass of int, check it first
    if isinstance(obj, bool):
        return Value(ValueType.INTEGER, 1 if obj else 0)
    if isinstance(obj, int):
        if obj < INT64_MIN or obj > INT64_MAX:
            raise ValueOutOfRange(obj, HostType.INT64.value)
        return Value(ValueType.INTEGER, obj)
    if isinstance(obj, float):
        return Value(ValueType.FLOAT, obj)
    if isinstance(obj, str):
        return Value(ValueType.TEXT, obj)
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return Value(ValueType.BLOB, bytes(obj))
    raise UnsupportedValueType(type(obj))


def _to_integer(value: Value, target: HostType) -> int:
    if value.type == ValueType.INTEGER:
        result = int(value.value)
    elif value.type == ValueType.FLOAT:
        if math.isnan(value.value) or math.isinf(value.value):
            raise ValueOutOfRange(value.value, target.value)
        # int() truncates toward zero
        result = int(value.value)
    else:
        raise ValueOutOfRange(value.value, target.value)

    low, high = _INTEGER_RANGES[target]
    if result < low or result > high:
        raise ValueOutOfRange(result, target.value)
    return result


def decode_value(value: Value, target: HostType = HostType.ANY) -> Any:
    """
    Decode a protocol value into a Python value.

    NULL decodes to None for every target; callers that need to tell a
    NULL apart from a zero should check ``value.is_null``.

    Args:
        value: The protocol value
        target: The requested Python type

    Returns:
        The decoded value

    Raises:
        ValueOutOfRange: If the value cannot be represented as ``target``
    """
    if value.type == ValueType.NULL:
        return None

    if target == HostType.ANY:
        if value.type == ValueType.INTEGER:
            return int(value.value)
        if value.type == ValueType.FLOAT:
            return float(value.value)
        if value.type == ValueType.TEXT:
            return str(value.value)
        return bytes(value.value)

    if target in _INTEGER_RANGES:
        return _to_integer(value, target)
    if target == HostType.BOOL:
        return _to_integer(value, HostType.INT64) != 0
    if target == HostType.FLOAT:
        if value.type in (ValueType.INTEGER, ValueType.FLOAT):
            return float(value.value)
        raise ValueOutOfRange(value.value, target.value)
    if target == HostType.TEXT:
        if value.type == ValueType.TEXT:
            return str(value.value)
        raise ValueOutOfRange(value.value, target.value)
    if target == HostType.BYTES:
        if value.type == ValueType.BLOB:
            return bytes(value.value)
        raise ValueOutOfRange(value.value, target.value)

    raise ValueOutOfRange(value.value, str(target))
