"""Tests for the per-row timeout check."""

import time
from unittest.mock import MagicMock

import pytest

from queryflow.common.exceptions import ErrorCode, QueryFlowError
from queryflow.execution.timeout import check_timeout


class TestCheckTimeout:

    def test_within_limit_returns_silently(self):
        store = MagicMock()

        check_timeout(store, 60, time.monotonic(), "dw", "hive", "qid", "select 1")

        store.store_error.assert_not_called()

    def test_over_limit_stores_error_and_raises(self):
        store = MagicMock()

        with pytest.raises(QueryFlowError) as exc_info:
            check_timeout(store, 1, time.monotonic() - 5, "dw", "hive", "qid", "select sleep(100)")

        message = "Query failed (#qid): Query exceeded maximum time limit of 1.00s"
        assert exc_info.value.error_code == ErrorCode.TIMEOUT_ERROR
        assert exc_info.value.message == message
        store.store_error.assert_called_once_with("dw", "hive", "qid", "select sleep(100)", message)
