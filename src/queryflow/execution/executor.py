"""Per-query execution: run the SQL, stream rows into the result file.

The result file holds one JSON array per line: the column names first, then
one array of nullable strings per row, in engine order. Every row is
written to the file; only the first ``row_limit`` rows (all of them for
``show`` queries) are kept in the returned :class:`QueryResult`.
"""

import json
import time
from contextlib import ExitStack, contextmanager
from typing import Any, Iterator, List, Optional, Tuple

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from queryflow.common.exceptions import (
    ErrorCode,
    QueryError,
    QueryFlowError,
    result_io_error,
    result_size_exceeded_error,
)
from queryflow.compute.engines.base import ResultStream
from queryflow.compute.factory import SQLEngineFactory
from queryflow.constants.engine import ENGINE_NAME, QueryStatus
from queryflow.execution.timeout import check_timeout
from queryflow.logging import get_logger
from queryflow.logging.filters import query_context
from queryflow.monitoring.metrics import QueryMetrics
from queryflow.settings import Settings
from queryflow.storage.metadata import MetadataStore
from queryflow.storage.result_store import ResultStore
from queryflow.telemetry.fluentd import FluentdEventSink, build_executed_event
from queryflow.types.query import DataSize, QueryResult, QuerySubmission
from queryflow.utils.decorators import traced

logger = get_logger(__name__)

_END_OF_ROWS = object()

_FAILURE_STATUS = {
    ErrorCode.QUERY_EXECUTION_ERROR: QueryStatus.FAILED_SQL,
    ErrorCode.RESULT_SIZE_EXCEEDED: QueryStatus.FAILED_SIZE,
    ErrorCode.TIMEOUT_ERROR: QueryStatus.FAILED_TIMEOUT,
}


def render_value(value: Any) -> Optional[str]:
    """Render one column value as a nullable string."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def encode_line(values: List[Any]) -> str:
    return json.dumps(values, ensure_ascii=False, separators=(",", ":")) + "\n"


def _utf8_length(text: str) -> int:
    # Unpaired surrogates are written as "?", matching the file's errors="replace"
    return len(text.encode("utf-8", errors="replace"))


def _error_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class QueryExecutor:
    """Runs a single submission end to end.

    Args:
        settings: Application settings
        engine_factory: Source of per-datasource SQL engines
        result_store: Resolves result file paths
        metadata_store: Receives history and error rows
        event_sink: Optional completion event sink
        metrics: Optional metrics collector
    """

    def __init__(
        self,
        settings: Settings,
        engine_factory: SQLEngineFactory,
        result_store: ResultStore,
        metadata_store: MetadataStore,
        event_sink: Optional[FluentdEventSink] = None,
        metrics: Optional[QueryMetrics] = None,
    ):
        self.settings = settings
        self.engine_factory = engine_factory
        self.result_store = result_store
        self.metadata_store = metadata_store
        self.event_sink = event_sink
        self.metrics = metrics

    @traced(
        span_name="queryflow.query.execute",
        attribute_getter=lambda self, query_id, submission: {
            "queryflow.query_id": query_id,
            "queryflow.datasource": submission.datasource,
            "db.system": ENGINE_NAME,
        },
    )
    def execute(self, query_id: str, submission: QuerySubmission) -> QueryResult:
        """Execute ``submission`` under ``query_id``.

        Raises:
            QueryError: The engine rejected or aborted the query
            QueryFlowError: Missing configuration, driver, size cap, timeout
                or result file failure
        """
        with query_context(query_id, submission.datasource, submission.user):
            started = time.monotonic()
            logger.info("Query started", extra={"query.engine": ENGINE_NAME})
            try:
                result = self._run(query_id, submission)
            except QueryFlowError as exc:
                status = _FAILURE_STATUS.get(exc.error_code)
                if status is not None and self.metrics is not None:
                    self.metrics.record_query(submission.datasource, status, time.monotonic() - started)
                logger.error(
                    "Query failed",
                    extra={"error_code": exc.error_code.value, "error": exc.message},
                )
                raise

            if self.metrics is not None:
                self.metrics.record_query(
                    submission.datasource,
                    QueryStatus.COMPLETED,
                    time.monotonic() - started,
                    int(result.raw_data_size.to_bytes()) if result.raw_data_size else 0,
                )
            logger.info(
                "Query completed",
                extra={
                    "query.line_number": result.line_number,
                    "query.raw_data_size": str(result.raw_data_size),
                    "duration.seconds": f"{time.monotonic() - started:.6f}",
                },
            )
            return result

    def _run(self, query_id: str, submission: QuerySubmission) -> QueryResult:
        datasource = submission.datasource
        engine = self.engine_factory.get(datasource)
        max_run_time = self.settings.query_max_run_time_seconds(datasource)

        with ExitStack() as scope:
            with self._recording_sql_failures(query_id, submission):
                conn = scope.enter_context(engine.connect())
                start = time.monotonic()
                engine.prepare_session(conn, query_id, max_run_time)
                stream = scope.enter_context(engine.stream(conn, submission.sql))
            result = self._materialize(query_id, submission, stream, start, max_run_time)

            if submission.store_history:
                self.metadata_store.insert_history(datasource, ENGINE_NAME, submission.sql, query_id)
            self._emit_executed_event(query_id, submission, start)

        return result

    @contextmanager
    def _recording_sql_failures(self, query_id: str, submission: QuerySubmission) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.metadata_store.store_error(
                submission.datasource, ENGINE_NAME, query_id, submission.sql, _error_message(exc)
            )
            raise QueryError(query_id, exc) from exc

    def _fetch_rows(
        self, query_id: str, submission: QuerySubmission, stream: ResultStream
    ) -> Iterator[Tuple[Any, ...]]:
        """Iterate the engine result, treating fetch errors as SQL failures."""
        rows = iter(stream)
        while True:
            with self._recording_sql_failures(query_id, submission):
                row = next(rows, _END_OF_ROWS)
            if row is _END_OF_ROWS:
                return
            yield row

    def _materialize(
        self,
        query_id: str,
        submission: QuerySubmission,
        stream: ResultStream,
        start: float,
        max_run_time: int,
    ) -> QueryResult:
        datasource = submission.datasource
        max_bytes = self.settings.max_result_file_byte_size
        keep_all = submission.is_show_query
        limit = submission.row_limit

        path = self.result_store.result_path(datasource, query_id)
        records: List[List[Optional[str]]] = []
        warning_message: Optional[str] = None

        try:
            with path.open("w", encoding="utf-8", errors="replace", newline="\n") as fh:
                header = encode_line(stream.columns)
                fh.write(header)
                line_number = 1
                result_bytes = _utf8_length(header)

                for row in self._fetch_rows(query_id, submission, stream):
                    values = [render_value(value) for value in row]
                    line = encode_line(values)
                    fh.write(line)
                    line_number += 1
                    result_bytes += _utf8_length(line)

                    if result_bytes > max_bytes:
                        message = f"Result file size exceeded {max_bytes} bytes. queryId={query_id}"
                        self.metadata_store.store_error(
                            datasource, ENGINE_NAME, query_id, submission.sql, message
                        )
                        raise result_size_exceeded_error(message, query_id, max_bytes)

                    if keep_all or len(records) < limit:
                        records.append(values)
                    elif warning_message is None:
                        warning_message = (
                            f"now fetch size is {len(records)}. This is more than {limit}. "
                            "So, fetch operation stopped."
                        )

                    check_timeout(
                        self.metadata_store, max_run_time, start,
                        datasource, ENGINE_NAME, query_id, submission.sql,
                    )

            raw_data_size = DataSize.of_bytes(path.stat().st_size).succinct()
        except OSError as exc:
            raise result_io_error(str(path), exc) from exc

        return QueryResult(
            query_id=query_id,
            columns=stream.columns,
            records=records,
            line_number=line_number,
            raw_data_size=raw_data_size,
            warning_message=warning_message,
        )

    def _emit_executed_event(self, query_id: str, submission: QuerySubmission, start: float) -> None:
        if self.event_sink is None or not self.event_sink.enabled:
            return
        event = build_executed_event(
            elapsed_millis=int((time.monotonic() - start) * 1000),
            user=submission.user,
            query=submission.sql,
            query_id=query_id,
            datasource=submission.datasource,
        )
        self.event_sink.emit(event)
