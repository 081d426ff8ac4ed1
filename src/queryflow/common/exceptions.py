from enum import Enum
from typing import Any, Dict, Optional

from queryflow.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(Enum):
    """Error codes, one per failure kind a submission can end in.

    The prefix names the category (``CONFIG``, ``CONNECTION``,
    ``EXECUTION``, ``RESOURCE``, ``PLATFORM``, ``RETRY``); callers branch on
    the code rather than on exception classes.
    """
    CONFIG_MISSING = "CONFIG_002"

    TIMEOUT_ERROR = "CONNECTION_003"

    EXECUTION_ERROR = "EXECUTION_001"
    QUERY_EXECUTION_ERROR = "EXECUTION_002"

    RESULT_SIZE_EXCEEDED = "RESOURCE_005"
    RESULT_IO_ERROR = "RESOURCE_006"

    PLATFORM_NOT_SUPPORTED = "PLATFORM_002"
    ENGINE_NOT_AVAILABLE = "PLATFORM_003"

    RATE_LIMIT_ERROR = "RETRY_002"


class QueryFlowError(Exception):
    """Base exception for queryflow.

    Attributes:
        message: Human readable message, also the text stored in error rows
        error_code: Failure kind
        details: Structured context (query id, config key, limits...)
        cause: Underlying exception, if any
        is_retryable: Whether resubmitting later may succeed
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXECUTION_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        is_retryable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        self.is_retryable = is_retryable

        logger.debug(
            message,
            extra={"error_code": error_code.value, "details": self.details},
        )

    def __str__(self) -> str:
        text = f"[{self.error_code.value}] {self.message}"
        if self.cause is not None:
            text += f" (caused by: {type(self.cause).__name__}: {self.cause})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "is_retryable": self.is_retryable,
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data


class QueryError(QueryFlowError):
    """The SQL engine rejected or aborted a query.

    Carries the query id so callers can correlate the failure with the
    error row and the ``.err`` file written for it.
    """

    def __init__(self, query_id: str, cause: BaseException):
        super().__init__(
            message=f"Query failed. queryId={query_id}",
            error_code=ErrorCode.QUERY_EXECUTION_ERROR,
            details={"query_id": query_id},
            cause=cause,
        )
        self.query_id = query_id


def configuration_error(message: str, config_key: Optional[str] = None, **kwargs: Any) -> QueryFlowError:
    """A setting needed to run the query is absent or unusable."""
    details = kwargs.pop("details", {})
    if config_key:
        details["config_key"] = config_key
    return QueryFlowError(message=message, error_code=ErrorCode.CONFIG_MISSING, details=details, **kwargs)


def driver_load_error(dialect: str, cause: Optional[BaseException] = None) -> QueryFlowError:
    """Create an error for a SQL client library that cannot be loaded."""
    return QueryFlowError(
        message=f"SQL driver for '{dialect}' is not available",
        error_code=ErrorCode.ENGINE_NOT_AVAILABLE,
        details={"dialect": dialect},
        cause=cause,
    )


def result_size_exceeded_error(message: str, query_id: str, max_bytes: int) -> QueryFlowError:
    """Create the error raised when a result file outgrows its byte cap."""
    return QueryFlowError(
        message=message,
        error_code=ErrorCode.RESULT_SIZE_EXCEEDED,
        details={"query_id": query_id, "max_result_file_byte_size": max_bytes},
    )


def query_timeout_error(message: str, query_id: str, max_run_time_seconds: float) -> QueryFlowError:
    """Create the error raised when a query runs past its time limit.

    Timeouts are not marked retryable: re-running the same query would
    hit the same limit.
    """
    return QueryFlowError(
        message=message,
        error_code=ErrorCode.TIMEOUT_ERROR,
        details={"query_id": query_id, "max_run_time_seconds": max_run_time_seconds},
    )


def result_io_error(path: str, cause: BaseException) -> QueryFlowError:
    return QueryFlowError(
        message=f"Failed to write result file {path}",
        error_code=ErrorCode.RESULT_IO_ERROR,
        details={"path": path},
        cause=cause,
    )


def query_rejected_error(pending: int, capacity: int) -> QueryFlowError:
    """Create the error raised when the dispatch backlog is full."""
    return QueryFlowError(
        message=f"Query rejected: {pending} queries outstanding, capacity is {capacity}",
        error_code=ErrorCode.RATE_LIMIT_ERROR,
        details={"pending": pending, "capacity": capacity},
        is_retryable=True,
    )


def platform_not_supported_error(datasource_type: str) -> QueryFlowError:
    return QueryFlowError(
        message=f"Datasource type '{datasource_type}' is not supported",
        error_code=ErrorCode.PLATFORM_NOT_SUPPORTED,
        details={"datasource_type": datasource_type},
    )
