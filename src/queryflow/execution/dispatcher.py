"""Submission front door: synchronous calls and the asynchronous worker pool.

Asynchronous submissions run on a fixed-width thread pool. The backlog in
front of it is bounded: once ``worker_pool_size + max_queued_queries``
submissions are outstanding, new ones are rejected instead of queued.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from queryflow.common.exceptions import query_rejected_error
from queryflow.execution.executor import QueryExecutor
from queryflow.execution.query_id import generate_query_id
from queryflow.logging import get_logger
from queryflow.settings import Settings
from queryflow.types.query import QueryResult, QuerySubmission

logger = get_logger(__name__)


class QueryDispatcher:
    """Runs submissions inline or on the worker pool behind a bounded backlog.

    Args:
        executor: Executes a single submission
        settings: Supplies pool width, backlog size and ``select_limit``
    """

    def __init__(self, executor: QueryExecutor, settings: Settings):
        self.executor = executor
        self.settings = settings
        self.pool_size = settings.worker_pool_size
        self.capacity = settings.worker_pool_size + settings.max_queued_queries
        self._pool = ThreadPoolExecutor(
            max_workers=self.pool_size,
            thread_name_prefix="queryflow-worker",
        )
        self._slots = threading.BoundedSemaphore(self.capacity)
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Submissions accepted but not yet finished, running ones included."""
        with self._lock:
            return self._pending

    def submit_async(self, datasource: str, sql: str, user: Optional[str]) -> str:
        """Queue a query and return its id immediately.

        The query keeps ``select_limit`` rows in memory and always stores
        history. Its outcome is only logged.

        Raises:
            QueryFlowError: RATE_LIMIT_ERROR when the backlog is full
        """
        if not self._slots.acquire(blocking=False):
            raise query_rejected_error(self.pending, self.capacity)
        with self._lock:
            self._pending += 1

        try:
            query_id = generate_query_id(datasource, sql)
            submission = QuerySubmission(
                datasource=datasource,
                sql=sql,
                user=user,
                store_history=True,
                row_limit=self.settings.select_limit,
            )
            self._pool.submit(self._run, query_id, submission)
        except BaseException:
            self._finish()
            raise

        logger.info("Query queued", extra={"queued.query_id": query_id, "pending": self.pending})
        return query_id

    def submit_sync(
        self,
        datasource: str,
        sql: str,
        user: Optional[str],
        store_history: bool,
        row_limit: int,
    ) -> QueryResult:
        """Run a query on the calling thread and return its summary.

        Raises:
            QueryError: The engine rejected or aborted the query
            QueryFlowError: Any other failure
        """
        query_id = generate_query_id(datasource, sql)
        submission = QuerySubmission(
            datasource=datasource,
            sql=sql,
            user=user,
            store_history=store_history,
            row_limit=row_limit,
        )
        return self.executor.execute(query_id, submission)

    def _run(self, query_id: str, submission: QuerySubmission) -> None:
        try:
            self.executor.execute(query_id, submission)
        except Exception as exc:
            logger.error(
                "Asynchronous query failed",
                extra={"failed.query_id": query_id, "error": str(exc)},
                exc_info=True,
            )
        finally:
            self._finish()

    def _finish(self) -> None:
        with self._lock:
            self._pending -= 1
        self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)
