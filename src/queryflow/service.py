"""Hive query service.

Wires settings, engines, stores, telemetry and the dispatcher together and
exposes the two entry points callers use.

Example:
    >>> from queryflow import HiveQueryService
    >>> from queryflow.settings import Settings
    >>> settings = Settings.from_properties("conf/yanagishima.properties")
    >>> with HiveQueryService(settings) as service:
    ...     query_id = service.do_query_async("dw", "select * from t", "alice")
    ...     result = service.do_query("dw", "show tables", "alice", True, 100)
"""

from typing import Optional

from queryflow.compute.factory import SQLEngineFactory
from queryflow.execution.dispatcher import QueryDispatcher
from queryflow.execution.executor import QueryExecutor
from queryflow.logging import get_logger
from queryflow.monitoring.metrics import QueryMetrics
from queryflow.settings import Settings, get_settings
from queryflow.storage.metadata import MetadataStore
from queryflow.storage.result_store import ResultStore
from queryflow.telemetry.fluentd import FluentdEventSink
from queryflow.types.query import QueryResult

logger = get_logger(__name__)


class HiveQueryService:
    """Executes SQL against named datasources.

    Args:
        settings: Application settings, defaults to :func:`get_settings`
        metadata_store: Optional pre-built store, built from
            ``settings.metadata_url`` otherwise
    """

    def __init__(self, settings: Optional[Settings] = None, metadata_store: Optional[MetadataStore] = None):
        self.settings = settings or get_settings()
        self.result_store = ResultStore(self.settings.result_dir)
        self._owns_metadata_store = metadata_store is None
        self.metadata_store = metadata_store or MetadataStore(
            self.settings.metadata_url, result_store=self.result_store
        )
        self.engine_factory = SQLEngineFactory(self.settings)
        self.executor = QueryExecutor(
            settings=self.settings,
            engine_factory=self.engine_factory,
            result_store=self.result_store,
            metadata_store=self.metadata_store,
            event_sink=FluentdEventSink(self.settings.fluentd),
            metrics=QueryMetrics(),
        )
        self.dispatcher = QueryDispatcher(self.executor, self.settings)
        logger.debug("Query service settings", extra={"settings": self.settings.masked_dump()})
        logger.info(
            "Query service started",
            extra={
                "datasources": sorted(self.settings.datasources),
                "worker_pool_size": self.settings.worker_pool_size,
            },
        )

    def do_query_async(self, datasource: str, query: str, user: Optional[str]) -> str:
        return self.dispatcher.submit_async(datasource, query, user)

    def do_query(
        self,
        datasource: str,
        query: str,
        user: Optional[str],
        store_history: bool,
        limit: int,
    ) -> QueryResult:
        return self.dispatcher.submit_sync(datasource, query, user, store_history, limit)

    def close(self, wait: bool = True) -> None:
        self.dispatcher.shutdown(wait=wait)
        self.engine_factory.dispose()
        if self._owns_metadata_store:
            self.metadata_store.dispose()

    def __enter__(self) -> "HiveQueryService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
