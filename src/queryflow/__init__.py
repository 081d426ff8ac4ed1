from queryflow.__version__ import __version__

from queryflow.common.exceptions import ErrorCode, QueryError, QueryFlowError
from queryflow.service import HiveQueryService
from queryflow.types.query import DataSize, DataSizeUnit, QueryResult, QuerySubmission

__all__ = [
    "__version__",

    "HiveQueryService",

    # Results
    "QueryResult",
    "QuerySubmission",
    "DataSize",
    "DataSizeUnit",

    # Exceptions (public API)
    "QueryFlowError",
    "QueryError",
    "ErrorCode",
]
