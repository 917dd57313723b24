"""
Protobuf Encoding for the Hrana HTTP Pipeline.

Pipelines are posted to ``/v3-protobuf/pipeline`` as ``application/x-protobuf``.

The message classes are built at import time from a descriptor describing
the subset of the Hrana v3 schema this client speaks (``hrana.proto`` and
``hrana.http.proto``). The file is declared as proto2 so every singular
field has presence; the wire format is identical to the server's proto3
schema.

Batch step conditions are never sent; every step is unconditional.
"""

from __future__ import annotations

from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, Message

from ..exceptions import ProtocolError
from ..types import BatchResult, Column, StatementResult, StreamErrorInfo
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
    StreamRequest,
    StreamResult,
)
from .values import Value, ValueType

CONTENT_TYPE = "application/x-protobuf"
PATH_SUFFIX = "/v3-protobuf/pipeline"

_PACKAGE = "hrana"

_F = descriptor_pb2.FieldDescriptorProto
_OPTIONAL = _F.LABEL_OPTIONAL
_REPEATED = _F.LABEL_REPEATED

# (name, number, type, label, message type, oneof name)
_FieldSpec = tuple[str, int, int, int, str | None, str | None]


def _field(
    name: str,
    number: int,
    type_: int,
    label: int = _OPTIONAL,
    message: str | None = None,
    oneof: str | None = None,
) -> _FieldSpec:
    return (name, number, type_, label, message, oneof)


def _add_message(
    container: Any,
    name: str,
    fields: list[_FieldSpec] | None = None,
    nested: list[str] | None = None,
) -> descriptor_pb2.DescriptorProto:
    """Append a message definition to a file or message descriptor."""
    msg = container.add(name=name)
    oneofs: list[str] = []
    for field_name, number, type_, label, message, oneof in fields or []:
        field = msg.field.add(name=field_name, number=number, type=type_, label=label)
        if message is not None:
            field.type_name = f".{_PACKAGE}.{message}"
        if oneof is not None:
            if oneof not in oneofs:
                oneofs.append(oneof)
                msg.oneof_decl.add(name=oneof)
            field.oneof_index = oneofs.index(oneof)
    for nested_name in nested or []:
        msg.nested_type.add(name=nested_name)
    return msg


def _add_map_field(msg: descriptor_pb2.DescriptorProto, name: str, number: int, entry: str, value: str) -> None:
    """Add a ``map<uint32, value>`` field to a message."""
    entry_msg = msg.nested_type.add(name=entry)
    entry_msg.options.map_entry = True
    entry_msg.field.add(name="key", number=1, type=_F.TYPE_UINT32, label=_OPTIONAL)
    entry_msg.field.add(
        name="value",
        number=2,
        type=_F.TYPE_MESSAGE,
        label=_OPTIONAL,
        type_name=f".{_PACKAGE}.{value}",
    )
    msg.field.add(
        name=name,
        number=number,
        type=_F.TYPE_MESSAGE,
        label=_REPEATED,
        type_name=f".{_PACKAGE}.{msg.name}.{entry}",
    )


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    f = descriptor_pb2.FileDescriptorProto(name="hrana_sdk/hrana.proto", package=_PACKAGE, syntax="proto2")
    m = f.message_type

    _add_message(m, "Error", [_field("message", 1, _F.TYPE_STRING), _field("code", 2, _F.TYPE_STRING)])
    _add_message(
        m,
        "Value",
        [
            _field("null", 1, _F.TYPE_MESSAGE, message="Value.Null", oneof="value"),
            _field("integer", 2, _F.TYPE_SINT64, oneof="value"),
            _field("float", 3, _F.TYPE_DOUBLE, oneof="value"),
            _field("text", 4, _F.TYPE_STRING, oneof="value"),
            _field("blob", 5, _F.TYPE_BYTES, oneof="value"),
        ],
        nested=["Null"],
    )
    _add_message(m, "NamedArg", [_field("name", 1, _F.TYPE_STRING), _field("value", 2, _F.TYPE_MESSAGE, message="Value")])
    _add_message(
        m,
        "Stmt",
        [
            _field("sql", 1, _F.TYPE_STRING),
            _field("sql_id", 2, _F.TYPE_INT32),
            _field("args", 3, _F.TYPE_MESSAGE, _REPEATED, "Value"),
            _field("named_args", 4, _F.TYPE_MESSAGE, _REPEATED, "NamedArg"),
            _field("want_rows", 5, _F.TYPE_BOOL),
        ],
    )
    _add_message(m, "Col", [_field("name", 1, _F.TYPE_STRING), _field("decltype", 2, _F.TYPE_STRING)])
    _add_message(m, "Row", [_field("values", 1, _F.TYPE_MESSAGE, _REPEATED, "Value")])
    _add_message(
        m,
        "StmtResult",
        [
            _field("cols", 1, _F.TYPE_MESSAGE, _REPEATED, "Col"),
            _field("rows", 2, _F.TYPE_MESSAGE, _REPEATED, "Row"),
            _field("affected_row_count", 3, _F.TYPE_UINT64),
            _field("last_insert_rowid", 4, _F.TYPE_SINT64),
            _field("replication_index", 5, _F.TYPE_UINT64),
            _field("rows_read", 6, _F.TYPE_UINT64),
            _field("rows_written", 7, _F.TYPE_UINT64),
            _field("query_duration_ms", 8, _F.TYPE_DOUBLE),
        ],
    )
    _add_message(m, "BatchStep", [_field("stmt", 2, _F.TYPE_MESSAGE, message="Stmt")])
    _add_message(m, "Batch", [_field("steps", 1, _F.TYPE_MESSAGE, _REPEATED, "BatchStep")])
    batch_result = _add_message(m, "BatchResult")
    _add_map_field(batch_result, "step_results", 1, "StepResultsEntry", "StmtResult")
    _add_map_field(batch_result, "step_errors", 2, "StepErrorsEntry", "Error")

    _add_message(m, "CloseStreamReq")
    _add_message(m, "CloseStreamResp")
    _add_message(m, "ExecuteStreamReq", [_field("stmt", 1, _F.TYPE_MESSAGE, message="Stmt")])
    _add_message(m, "ExecuteStreamResp", [_field("result", 1, _F.TYPE_MESSAGE, message="StmtResult")])
    _add_message(m, "BatchStreamReq", [_field("batch", 1, _F.TYPE_MESSAGE, message="Batch")])
    _add_message(m, "BatchStreamResp", [_field("result", 1, _F.TYPE_MESSAGE, message="BatchResult")])
    _add_message(m, "GetAutocommitStreamReq")
    _add_message(m, "GetAutocommitStreamResp", [_field("is_autocommit", 1, _F.TYPE_BOOL)])

    _add_message(
        m,
        "StreamRequest",
        [
            _field("close", 1, _F.TYPE_MESSAGE, message="CloseStreamReq", oneof="request"),
            _field("execute", 2, _F.TYPE_MESSAGE, message="ExecuteStreamReq", oneof="request"),
            _field("batch", 3, _F.TYPE_MESSAGE, message="BatchStreamReq", oneof="request"),
            _field("get_autocommit", 8, _F.TYPE_MESSAGE, message="GetAutocommitStreamReq", oneof="request"),
        ],
    )
    _add_message(
        m,
        "StreamResponse",
        [
            _field("close", 1, _F.TYPE_MESSAGE, message="CloseStreamResp", oneof="response"),
            _field("execute", 2, _F.TYPE_MESSAGE, message="ExecuteStreamResp", oneof="response"),
            _field("batch", 3, _F.TYPE_MESSAGE, message="BatchStreamResp", oneof="response"),
            _field("get_autocommit", 8, _F.TYPE_MESSAGE, message="GetAutocommitStreamResp", oneof="response"),
        ],
    )
    _add_message(
        m,
        "StreamResult",
        [
            _field("ok", 1, _F.TYPE_MESSAGE, message="StreamResponse", oneof="result"),
            _field("error", 2, _F.TYPE_MESSAGE, message="Error", oneof="result"),
        ],
    )
    _add_message(
        m,
        "PipelineReqBody",
        [
            _field("baton", 1, _F.TYPE_STRING),
            _field("requests", 2, _F.TYPE_MESSAGE, _REPEATED, "StreamRequest"),
        ],
    )
    _add_message(
        m,
        "PipelineRespBody",
        [
            _field("baton", 1, _F.TYPE_STRING),
            _field("base_url", 2, _F.TYPE_STRING),
            _field("results", 3, _F.TYPE_MESSAGE, _REPEATED, "StreamResult"),
        ],
    )
    return f


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str) -> type[Message]:
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


PbValue = _message_class("Value")
PbStmt = _message_class("Stmt")
PbStmtResult = _message_class("StmtResult")
PbBatchResult = _message_class("BatchResult")
PbError = _message_class("Error")
PbStreamRequest = _message_class("StreamRequest")
PbStreamResponse = _message_class("StreamResponse")
PbStreamResult = _message_class("StreamResult")
PbPipelineReqBody = _message_class("PipelineReqBody")
PbPipelineRespBody = _message_class("PipelineRespBody")


# Encoding


def value_to_pb(value: Value, out: Any) -> None:
    """Fill a ``hrana.Value`` message from a protocol value."""
    if value.type == ValueType.NULL:
        out.null.SetInParent()
    elif value.type == ValueType.INTEGER:
        out.integer = value.value
    elif value.type == ValueType.FLOAT:
        out.float = value.value
    elif value.type == ValueType.TEXT:
        out.text = value.value
    elif value.type == ValueType.BLOB:
        out.blob = value.value
    else:
        raise TypeError(f"Unknown value type: {value.type!r}")


def stmt_to_pb(stmt: Stmt, out: Any) -> None:
    out.sql = stmt.sql
    out.want_rows = stmt.want_rows
    for arg in stmt.args:
        value_to_pb(arg, out.args.add())
    for name, arg in stmt.named_args.items():
        named = out.named_args.add(name=name)
        value_to_pb(arg, named.value)


def _request_to_pb(request: StreamRequest, out: Any) -> None:
    if isinstance(request, ExecuteStreamRequest):
        stmt_to_pb(request.stmt, out.execute.stmt)
    elif isinstance(request, BatchStreamRequest):
        batch = out.batch.batch
        # Touch the batch so an empty step list is still sent as a batch request
        batch.SetInParent()
        for step in request.steps:
            stmt_to_pb(step, batch.steps.add().stmt)
    elif isinstance(request, GetAutocommitStreamRequest):
        out.get_autocommit.SetInParent()
    elif isinstance(request, CloseStreamRequest):
        out.close.SetInParent()
    else:
        raise TypeError(f"Unknown stream request: {type(request).__name__}")


# Decoding


def value_from_pb(msg: Any) -> Value:
    kind = msg.WhichOneof("value")
    if kind is None or kind == "null":
        return Value.null()
    if kind == "integer":
        return Value(ValueType.INTEGER, msg.integer)
    if kind == "float":
        return Value(ValueType.FLOAT, msg.float)
    if kind == "text":
        return Value(ValueType.TEXT, msg.text)
    return Value(ValueType.BLOB, bytes(msg.blob))


def error_from_pb(msg: Any) -> StreamErrorInfo:
    return StreamErrorInfo(
        message=msg.message,
        code=msg.code if msg.HasField("code") else None,
    )


def stmt_result_from_pb(msg: Any) -> StatementResult:
    return StatementResult(
        columns=[
            Column(
                name=col.name if col.HasField("name") else None,
                decltype=col.decltype if col.HasField("decltype") else None,
            )
            for col in msg.cols
        ],
        rows=[[value_from_pb(v) for v in row.values] for row in msg.rows],
        affected_row_count=msg.affected_row_count,
        last_insert_rowid=msg.last_insert_rowid if msg.HasField("last_insert_rowid") else None,
        rows_read=msg.rows_read,
        rows_written=msg.rows_written,
    )


def batch_result_from_pb(msg: Any) -> BatchResult:
    return BatchResult(
        step_results={int(k): stmt_result_from_pb(v) for k, v in msg.step_results.items()},
        step_errors={int(k): error_from_pb(v) for k, v in msg.step_errors.items()},
    )


def _result_from_pb(msg: Any) -> StreamResult:
    kind = msg.WhichOneof("result")
    if kind == "error":
        return StreamFailure(error=error_from_pb(msg.error))
    if kind != "ok":
        raise ProtocolError("Stream result has neither 'ok' nor 'error'")

    response = msg.ok
    resp_kind = response.WhichOneof("response")
    if resp_kind == "execute":
        return StreamOk(ExecuteStreamResponse(result=stmt_result_from_pb(response.execute.result)))
    if resp_kind == "batch":
        return StreamOk(BatchStreamResponse(result=batch_result_from_pb(response.batch.result)))
    if resp_kind == "get_autocommit":
        return StreamOk(GetAutocommitStreamResponse(is_autocommit=response.get_autocommit.is_autocommit))
    if resp_kind == "close":
        return StreamOk(CloseStreamResponse())
    raise ProtocolError(f"Unknown stream response type: {resp_kind!r}")


class ProtobufCodec(PipelineCodec):
    """Hrana v3 Protobuf pipeline encoding."""

    name = "protobuf"
    content_type = CONTENT_TYPE
    path_suffix = PATH_SUFFIX

    def encode_request(self, request: PipelineRequest) -> bytes:
        body = PbPipelineReqBody()
        if request.baton is not None:
            body.baton = request.baton
        for stream_request in request.requests:
            _request_to_pb(stream_request, body.requests.add())
        data: bytes = body.SerializeToString()
        return data

    def decode_response(self, data: bytes) -> PipelineResponse:
        body = PbPipelineRespBody()
        try:
            body.ParseFromString(data)
        except DecodeError as e:
            raise ProtocolError(f"Invalid protobuf pipeline response: {e}")

        return PipelineResponse(
            results=[_result_from_pb(result) for result in body.results],
            baton=body.baton if body.HasField("baton") else None,
            base_url=body.base_url if body.HasField("base_url") else None,
        )
