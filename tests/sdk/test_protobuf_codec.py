"""Tests for the Protobuf pipeline encoding."""

import struct

import pytest

from hrana_sdk.exceptions import ProtocolError
from hrana_sdk.protocol import get_codec
from hrana_sdk.protocol.pipeline import (
    BatchStreamRequest,
    BatchStreamResponse,
    CloseStreamRequest,
    CloseStreamResponse,
    ExecuteStreamRequest,
    ExecuteStreamResponse,
    GetAutocommitStreamRequest,
    GetAutocommitStreamResponse,
    PipelineRequest,
    Stmt,
    StreamFailure,
    StreamOk,
)
from hrana_sdk.protocol.protobuf import PbPipelineRespBody, PbStreamResult, ProtobufCodec
from hrana_sdk.protocol.values import INT64_MIN, Value, ValueType
from tests.sdk.fakes import (
    SentRequest,
    autocommit_ok,
    batch_ok,
    close_ok,
    execute_ok,
    failure,
    pipeline_response,
)


def decode_request(data: bytes):  # type: ignore[no-untyped-def]
    return SentRequest("", data, None, "", None).decoded()


def varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def length_delimited(field_number: int, payload: bytes) -> bytes:
    return varint(field_number << 3 | 2) + varint(len(payload)) + payload


class TestEncodeRequest:
    """Tests for ProtobufCodec.encode_request."""

    def test_codec_metadata(self) -> None:
        codec = get_codec("protobuf")
        assert isinstance(codec, ProtobufCodec)
        assert codec.content_type == "application/x-protobuf"
        assert codec.path_suffix == "/v3-protobuf/pipeline"

    def test_baton_omitted_when_none(self) -> None:
        data = ProtobufCodec().encode_request(PipelineRequest([GetAutocommitStreamRequest()]))
        assert not decode_request(data).HasField("baton")

    def test_baton_included(self) -> None:
        data = ProtobufCodec().encode_request(PipelineRequest([GetAutocommitStreamRequest()], baton="abc"))
        assert decode_request(data).baton == "abc"

    def test_execute_with_all_value_types(self) -> None:
        stmt = Stmt.build("INSERT INTO t VALUES (?, ?, ?, ?, ?)", [None, INT64_MIN, 1.5, "x", b"\x00"])
        data = ProtobufCodec().encode_request(PipelineRequest([ExecuteStreamRequest(stmt)]))

        sent = decode_request(data).requests[0].execute.stmt
        assert sent.sql == "INSERT INTO t VALUES (?, ?, ?, ?, ?)"
        assert [arg.WhichOneof("value") for arg in sent.args] == ["null", "integer", "float", "text", "blob"]
        assert sent.args[1].integer == INT64_MIN
        assert sent.args[2].float == 1.5
        assert sent.args[4].blob == b"\x00"

    def test_named_args_keep_order(self) -> None:
        stmt = Stmt.build("SELECT :a, $b", {"a": 1, "$b": "two"})
        data = ProtobufCodec().encode_request(PipelineRequest([ExecuteStreamRequest(stmt)]))

        named = decode_request(data).requests[0].execute.stmt.named_args
        assert [arg.name for arg in named] == [":a", "$b"]

    def test_batch_steps_are_unconditional(self) -> None:
        steps = [Stmt("COMMIT", want_rows=False), Stmt("BEGIN", want_rows=False)]
        data = ProtobufCodec().encode_request(PipelineRequest([BatchStreamRequest(steps)]))

        sent = decode_request(data).requests[0].batch.batch.steps
        assert [step.stmt.sql for step in sent] == ["COMMIT", "BEGIN"]
        assert [field.name for field, _ in sent[0].ListFields()] == ["stmt"]

    def test_close_and_get_autocommit(self) -> None:
        data = ProtobufCodec().encode_request(
            PipelineRequest([GetAutocommitStreamRequest(), CloseStreamRequest()], baton="b")
        )

        requests = decode_request(data).requests
        assert [r.WhichOneof("request") for r in requests] == ["get_autocommit", "close"]


class TestDecodeResponse:
    """Tests for ProtobufCodec.decode_response."""

    def test_baton_and_base_url(self) -> None:
        data = pipeline_response(close_ok(), baton="next", base_url="https://other.example.com")

        response = ProtobufCodec().decode_response(data)

        assert response.baton == "next"
        assert response.base_url == "https://other.example.com"

    def test_absent_baton_is_none(self) -> None:
        response = ProtobufCodec().decode_response(pipeline_response(close_ok()))

        assert response.baton is None
        assert response.base_url is None

    def test_empty_baton_is_kept(self) -> None:
        response = ProtobufCodec().decode_response(pipeline_response(close_ok(), baton=""))
        assert response.baton == ""

    def test_execute_result(self) -> None:
        data = pipeline_response(
            execute_ok(columns=["id", "name"], rows=[[-5, "x"], [None, b"\x01"]], affected_row_count=2,
                       last_insert_rowid=9)
        )

        result = ProtobufCodec().decode_response(data).results[0]

        assert isinstance(result, StreamOk)
        assert isinstance(result.response, ExecuteStreamResponse)
        stmt_result = result.response.result
        assert stmt_result.column_names == ["id", "name"]
        assert stmt_result.rows[0] == [Value(ValueType.INTEGER, -5), Value(ValueType.TEXT, "x")]
        assert stmt_result.rows[1] == [Value.null(), Value(ValueType.BLOB, b"\x01")]
        assert stmt_result.affected_row_count == 2
        assert stmt_result.last_insert_rowid == 9

    def test_batch_result(self) -> None:
        data = pipeline_response(batch_ok(1, errors={1: "boom"}))

        result = ProtobufCodec().decode_response(data).results[0]

        assert isinstance(result, StreamOk)
        assert isinstance(result.response, BatchStreamResponse)
        assert sorted(result.response.result.step_results) == [0]
        assert result.response.result.step_errors[1].message == "boom"

    def test_other_responses(self) -> None:
        data = pipeline_response(autocommit_ok(False), close_ok())

        results = ProtobufCodec().decode_response(data).results

        assert isinstance(results[0], StreamOk)
        assert results[0].response == GetAutocommitStreamResponse(is_autocommit=False)
        assert isinstance(results[1], StreamOk)
        assert isinstance(results[1].response, CloseStreamResponse)

    def test_error_result(self) -> None:
        result = ProtobufCodec().decode_response(pipeline_response(failure("bad", code="SQL_PARSE_ERROR"))).results[0]

        assert isinstance(result, StreamFailure)
        assert result.error.message == "bad"
        assert result.error.code == "SQL_PARSE_ERROR"

    def test_invalid_bytes_raise_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            ProtobufCodec().decode_response(b"\xff\xff\xff\xff")

    def test_result_without_outcome_raises(self) -> None:
        body = PbPipelineRespBody()
        body.results.add().CopyFrom(PbStreamResult())

        with pytest.raises(ProtocolError, match="neither"):
            ProtobufCodec().decode_response(body.SerializeToString())

    def test_stmt_result_counters_from_server_bytes(self) -> None:
        """Counters are read from the field numbers sqld writes."""
        stmt_result = (
            varint(3 << 3) + varint(2)  # affected_row_count
            + varint(5 << 3) + varint(42)  # replication_index
            + varint(6 << 3) + varint(7)  # rows_read
            + varint(7 << 3) + varint(3)  # rows_written
            + varint(8 << 3 | 1) + struct.pack("<d", 1.5)  # query_duration_ms
        )
        execute_resp = length_delimited(1, stmt_result)
        stream_response = length_delimited(2, execute_resp)
        stream_result = length_delimited(1, stream_response)
        data = length_delimited(1, b"b1") + length_delimited(3, stream_result)

        response = ProtobufCodec().decode_response(data)

        assert response.baton == "b1"
        result = response.results[0]
        assert isinstance(result, StreamOk)
        assert isinstance(result.response, ExecuteStreamResponse)
        stmt = result.response.result
        assert stmt.affected_row_count == 2
        assert (stmt.rows_read, stmt.rows_written) == (7, 3)
