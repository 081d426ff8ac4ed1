from queryflow.types.base import QueryFlowBaseModel
from queryflow.types.query import DataSize, DataSizeUnit, QueryResult, QuerySubmission

__all__ = [
    "QueryFlowBaseModel",
    "DataSize",
    "DataSizeUnit",
    "QueryResult",
    "QuerySubmission",
]
