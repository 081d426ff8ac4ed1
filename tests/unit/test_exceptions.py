"""Tests for error codes and helpers."""

from queryflow.common.exceptions import (
    ErrorCode,
    QueryError,
    configuration_error,
    query_rejected_error,
)


def test_query_error_carries_query_id_and_cause():
    cause = RuntimeError("table not found")

    error = QueryError("qid", cause)

    assert error.query_id == "qid"
    assert error.cause is cause
    assert str(error) == "[EXECUTION_002] Query failed. queryId=qid (caused by: RuntimeError: table not found)"
    assert error.to_dict()["cause"] == "RuntimeError: table not found"


def test_configuration_error_records_key():
    error = configuration_error("hive.jdbc.dw.url is not configured", config_key="hive.jdbc.dw.url")

    assert error.error_code == ErrorCode.CONFIG_MISSING
    assert error.to_dict() == {
        "type": "QueryFlowError",
        "message": "hive.jdbc.dw.url is not configured",
        "error_code": "CONFIG_002",
        "error_name": "CONFIG_MISSING",
        "details": {"config_key": "hive.jdbc.dw.url"},
        "is_retryable": False,
    }


def test_rejection_is_retryable():
    error = query_rejected_error(pending=1010, capacity=1010)

    assert error.is_retryable
    assert error.error_code == ErrorCode.RATE_LIMIT_ERROR
