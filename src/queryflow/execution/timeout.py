import time

from queryflow.common.exceptions import query_timeout_error
from queryflow.storage.metadata import MetadataStore


def check_timeout(
    metadata_store: MetadataStore,
    max_run_time_seconds: float,
    start: float,
    datasource: str,
    engine: str,
    query_id: str,
    sql: str,
) -> None:
    """Fail the query if it has run longer than ``max_run_time_seconds``.

    ``start`` is a :func:`time.monotonic` reading taken when the query
    started. The server-side statement timeout is the primary limit; this
    check covers engines that do not honour it and runs once per row.

    Raises:
        QueryFlowError: TIMEOUT_ERROR, after the error row is stored
    """
    if time.monotonic() - start > max_run_time_seconds:
        message = (
            f"Query failed (#{query_id}): Query exceeded maximum time limit of "
            f"{float(max_run_time_seconds):.2f}s"
        )
        metadata_store.store_error(datasource, engine, query_id, sql, message)
        raise query_timeout_error(message, query_id, max_run_time_seconds)
