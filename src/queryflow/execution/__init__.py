from queryflow.execution.dispatcher import QueryDispatcher
from queryflow.execution.executor import QueryExecutor
from queryflow.execution.query_id import generate_query_id
from queryflow.execution.timeout import check_timeout

__all__ = ["QueryDispatcher", "QueryExecutor", "generate_query_id", "check_timeout"]
