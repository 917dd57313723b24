"""
JSON Encoding for the Hrana HTTP Pipeline.

Pipelines are posted to ``/v3/pipeline`` as ``application/json``. Useful for
debugging with plain HTTP tooling; the Protobuf encoding is the default.

Value encoding:
- null:    {"type": "null"}
- integer: {"type": "integer", "value": "42"}   (decimal string, 64-bit safe)
- float:   {"type": "float", "value": 1.5}
- text:    {"type": "text", "value": "abc"}
- blob:    {"type": "blob", "base64": "AAE="}
"""

import base64
import binascii
import json
from typing import Any

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

CONTENT_TYPE = "application/json"
PATH_SUFFIX = "/v3/pipeline"


def value_to_dict(value: Value) -> dict[str, Any]:
    if value.type == ValueType.NULL:
        return {"type": "null"}
    if value.type == ValueType.INTEGER:
        return {"type": "integer", "value": str(value.value)}
    if value.type == ValueType.FLOAT:
        return {"type": "float", "value": value.value}
    if value.type == ValueType.TEXT:
        return {"type": "text", "value": value.value}
    if value.type == ValueType.BLOB:
        return {"type": "blob", "base64": base64.b64encode(value.value).decode("ascii")}
    raise TypeError(f"Unknown value type: {value.type!r}")


def value_from_dict(data: dict[str, Any]) -> Value:
    kind = data.get("type")
    try:
        if kind == "null":
            return Value.null()
        if kind == "integer":
            return Value(ValueType.INTEGER, int(data["value"]))
        if kind == "float":
            return Value(ValueType.FLOAT, float(data["value"]))
        if kind == "text":
            return Value(ValueType.TEXT, str(data["value"]))
        if kind == "blob":
            encoded = data["base64"]
            # Servers may omit base64 padding
            encoded += "=" * (-len(encoded) % 4)
            return Value(ValueType.BLOB, base64.b64decode(encoded))
    except (KeyError, ValueError, TypeError, binascii.Error) as e:
        raise ProtocolError(f"Invalid {kind} value: {e}")
    raise ProtocolError(f"Unknown value type: {kind!r}")


def stmt_to_dict(stmt: Stmt) -> dict[str, Any]:
    data: dict[str, Any] = {"sql": stmt.sql, "want_rows": stmt.want_rows}
    if stmt.args:
        data["args"] = [value_to_dict(v) for v in stmt.args]
    if stmt.named_args:
        data["named_args"] = [{"name": name, "value": value_to_dict(v)} for name, v in stmt.named_args.items()]
    return data


def _request_to_dict(request: StreamRequest) -> dict[str, Any]:
    if isinstance(request, ExecuteStreamRequest):
        return {"type": "execute", "stmt": stmt_to_dict(request.stmt)}
    if isinstance(request, BatchStreamRequest):
        steps = [{"stmt": stmt_to_dict(step)} for step in request.steps]
        return {"type": "batch", "batch": {"steps": steps}}
    if isinstance(request, GetAutocommitStreamRequest):
        return {"type": "get_autocommit"}
    if isinstance(request, CloseStreamRequest):
        return {"type": "close"}
    raise TypeError(f"Unknown stream request: {type(request).__name__}")


def error_from_dict(data: dict[str, Any]) -> StreamErrorInfo:
    return StreamErrorInfo(message=data.get("message", "Unknown error"), code=data.get("code"))


def stmt_result_from_dict(data: dict[str, Any]) -> StatementResult:
    last_insert_rowid = data.get("last_insert_rowid")
    return StatementResult(
        columns=[Column(name=col.get("name"), decltype=col.get("decltype")) for col in data.get("cols", [])],
        rows=[[value_from_dict(v) for v in row] for row in data.get("rows", [])],
        affected_row_count=int(data.get("affected_row_count", 0)),
        last_insert_rowid=int(last_insert_rowid) if last_insert_rowid is not None else None,
        rows_read=int(data.get("rows_read", 0)),
        rows_written=int(data.get("rows_written", 0)),
    )


def batch_result_from_dict(data: dict[str, Any]) -> BatchResult:
    result = BatchResult()
    for i, step in enumerate(data.get("step_results", [])):
        if step is not None:
            result.step_results[i] = stmt_result_from_dict(step)
    for i, error in enumerate(data.get("step_errors", [])):
        if error is not None:
            result.step_errors[i] = error_from_dict(error)
    return result


def _result_from_dict(data: dict[str, Any]) -> StreamResult:
    kind = data.get("type")
    if kind == "error":
        return StreamFailure(error=error_from_dict(data.get("error", {})))
    if kind != "ok":
        raise ProtocolError(f"Unknown stream result type: {kind!r}")

    response = data.get("response") or {}
    resp_kind = response.get("type")
    if resp_kind == "execute":
        return StreamOk(ExecuteStreamResponse(result=stmt_result_from_dict(response["result"])))
    if resp_kind == "batch":
        return StreamOk(BatchStreamResponse(result=batch_result_from_dict(response["result"])))
    if resp_kind == "get_autocommit":
        return StreamOk(GetAutocommitStreamResponse(is_autocommit=bool(response["is_autocommit"])))
    if resp_kind == "close":
        return StreamOk(CloseStreamResponse())
    raise ProtocolError(f"Unknown stream response type: {resp_kind!r}")


class JSONCodec(PipelineCodec):
    """Hrana v3 JSON pipeline encoding."""

    name = "json"
    content_type = CONTENT_TYPE
    path_suffix = PATH_SUFFIX

    def encode_request(self, request: PipelineRequest) -> bytes:
        body = {
            "baton": request.baton,
            "requests": [_request_to_dict(r) for r in request.requests],
        }
        return json.dumps(body).encode("utf-8")

    def decode_response(self, data: bytes) -> PipelineResponse:
        try:
            body = json.loads(data)
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON pipeline response: {e}")
        if not isinstance(body, dict):
            raise ProtocolError("Pipeline response is not a JSON object")

        try:
            results = [_result_from_dict(r) for r in body.get("results", [])]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ProtocolError(f"Malformed pipeline response: {e}")

        return PipelineResponse(
            results=results,
            baton=body.get("baton"),
            base_url=body.get("base_url"),
        )
