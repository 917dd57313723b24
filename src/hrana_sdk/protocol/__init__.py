"""
Hrana SDK Protocol Module.

Implements the Hrana v3 pipeline messages and the value codec.
Wire encodings live in ``protocol.protobuf`` (default) and
``protocol.json_codec``; use ``get_codec()`` to pick one by name.
"""

from typing import Literal

from .values import HostType, Value, ValueType, decode_value, encode_value
from .pipeline import (
    BatchStreamRequest,
    BatchStreamResponse,
    CloseStreamRequest,
    CloseStreamResponse,
    ExecuteStreamRequest,
    ExecuteStreamResponse,
    GetAutocommitStreamRequest,
    GetAutocommitStreamResponse,
    PipelineCodec,
    PipelineRequest,
    PipelineResponse,
    Stmt,
    StreamFailure,
    StreamOk,
)

WireProtocol = Literal["protobuf", "json"]


def get_codec(protocol: WireProtocol = "protobuf") -> PipelineCodec:
    """Get the wire codec for a protocol name."""
    # Imported lazily: the codecs depend on ..types, which depends on .values
    if protocol == "protobuf":
        from .protobuf import ProtobufCodec

        return ProtobufCodec()
    if protocol == "json":
        from .json_codec import JSONCodec

        return JSONCodec()
    raise ValueError(f"Invalid protocol '{protocol}'. Must be 'protobuf' or 'json'.")


__all__ = [
    # Values
    "HostType",
    "Value",
    "ValueType",
    "decode_value",
    "encode_value",
    # Pipeline
    "BatchStreamRequest",
    "BatchStreamResponse",
    "CloseStreamRequest",
    "CloseStreamResponse",
    "ExecuteStreamRequest",
    "ExecuteStreamResponse",
    "GetAutocommitStreamRequest",
    "GetAutocommitStreamResponse",
    "PipelineCodec",
    "PipelineRequest",
    "PipelineResponse",
    "Stmt",
    "StreamFailure",
    "StreamOk",
    # Codecs
    "WireProtocol",
    "get_codec",
]
