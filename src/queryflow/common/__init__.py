"""Common exceptions for QueryFlow.

The exception system uses error codes for categorization rather than
numerous specific exception classes. All exceptions inherit from
QueryFlowError and include structured error information. QueryError is the
one typed exception callers of the synchronous path are expected to catch.
"""

from queryflow.common.exceptions import (
    QueryFlowError,
    QueryError,
    ErrorCode,
    # Helper functions
    configuration_error,
    driver_load_error,
    result_size_exceeded_error,
    query_timeout_error,
    result_io_error,
    query_rejected_error,
    platform_not_supported_error,
)

__all__ = [
    "QueryFlowError",
    "QueryError",
    "ErrorCode",
    "configuration_error",
    "driver_load_error",
    "result_size_exceeded_error",
    "query_timeout_error",
    "result_io_error",
    "query_rejected_error",
    "platform_not_supported_error",
]
