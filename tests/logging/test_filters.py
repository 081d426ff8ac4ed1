import logging

from queryflow.logging.filters import (
    ContextFilter,
    clear_query_context,
    query_context,
    set_logging_context,
    set_query_context,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="sample",
        args=(),
        exc_info=None,
    )


def test_context_filter_respects_static_environment():
    set_logging_context(environment="qa", extra={"region": "us-east"})
    try:
        record = _record()
        assert ContextFilter().filter(record)
        assert getattr(record, "environment") == "qa"
        assert getattr(record, "region") == "us-east"
    finally:
        set_logging_context(environment=None, extra=None)


def test_context_filter_uses_query_context():
    set_logging_context(environment=None, extra=None)
    set_query_context(query_id="qid-1", datasource="dw", user_id="user-7")
    try:
        record = _record()
        assert ContextFilter().filter(record)
        assert record.query_id == "qid-1"
        assert record.datasource == "dw"
        assert record.user_id == "user-7"
    finally:
        clear_query_context()


def test_query_context_is_cleared_on_exit():
    with query_context("qid-2", "dw", "alice"):
        inside = _record()
        ContextFilter().filter(inside)

    outside = _record()
    ContextFilter().filter(outside)

    assert inside.query_id == "qid-2"
    assert outside.query_id is None
    assert outside.datasource is None


def test_context_filter_no_config_is_graceful():
    set_logging_context(environment=None, extra=None)
    record = _record()
    assert ContextFilter().filter(record)
    assert not hasattr(record, "environment")
    assert record.sdk_name == "queryflow"
