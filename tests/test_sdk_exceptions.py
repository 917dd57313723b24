"""Unit tests for hrana_sdk.exceptions: SDK exception hierarchy."""

from hrana_sdk.exceptions import (
    BatchError,
    HranaError,
    InvalidStateError,
    ProtocolError,
    StatementError,
    TimeoutError,
    TransportError,
    UnsupportedValueType,
    ValueCodecError,
    ValueOutOfRange,
)


class TestHranaError:
    def test_init_message_only(self) -> None:
        err = HranaError("something broke")
        assert err.message == "something broke"
        assert err.code is None
        assert str(err) == "something broke"

    def test_init_with_code(self) -> None:
        err = HranaError("server error", code="SQLITE_BUSY")
        assert err.code == "SQLITE_BUSY"

    def test_is_exception(self) -> None:
        assert isinstance(HranaError("test"), Exception)


class TestTransportError:
    def test_status_code(self) -> None:
        err = TransportError("HTTP error: 502", status_code=502)
        assert err.status_code == 502
        assert err.code == 502
        assert isinstance(err, HranaError)

    def test_without_status(self) -> None:
        assert TransportError("Request failed").status_code is None


class TestTimeoutError:
    def test_is_transport_error(self) -> None:
        err = TimeoutError("timed out")
        assert isinstance(err, TransportError)
        assert isinstance(err, HranaError)


class TestProtocolError:
    def test_inherits_hrana_error(self) -> None:
        assert isinstance(ProtocolError("bad envelope"), HranaError)


class TestStatementError:
    def test_init_minimal(self) -> None:
        err = StatementError("no such table: t")
        assert err.message == "no such table: t"
        assert err.sql is None
        assert err.code is None

    def test_init_full(self) -> None:
        err = StatementError("syntax error", sql="SELEC 1", code="SQL_PARSE_ERROR")
        assert err.sql == "SELEC 1"
        assert err.code == "SQL_PARSE_ERROR"


class TestBatchError:
    def test_step_and_sql(self) -> None:
        err = BatchError("constraint failed", step=2, sql="INSERT INTO t VALUES (1)", code="SQLITE_CONSTRAINT")
        assert err.step == 2
        assert err.sql == "INSERT INTO t VALUES (1)"
        assert err.code == "SQLITE_CONSTRAINT"

    def test_is_statement_error(self) -> None:
        assert isinstance(BatchError("boom", step=0), StatementError)


class TestValueCodecErrors:
    def test_unsupported_value_type(self) -> None:
        err = UnsupportedValueType(list)
        assert err.value_type is list
        assert str(err) == "Unsupported value type: list"
        assert isinstance(err, ValueCodecError)

    def test_value_out_of_range(self) -> None:
        err = ValueOutOfRange(300, "int8")
        assert err.value == 300
        assert err.target == "int8"
        assert str(err) == "Value (300) out of range for int8"
        assert isinstance(err, ValueCodecError)


class TestInvalidStateError:
    def test_inherits_hrana_error(self) -> None:
        assert isinstance(InvalidStateError("Stream is closed"), HranaError)
