"""Query history and error records.

Both operations are single-row inserts, each in its own transaction, so the
store can be shared by every worker of the dispatch pool.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from queryflow.logging import get_logger
from queryflow.utils.decorators import retry_with_backoff

if TYPE_CHECKING:
    from queryflow.storage.result_store import ResultStore

logger = get_logger(__name__)

metadata_obj = MetaData()

query_history = Table(
    "query_history",
    metadata_obj,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("datasource", String(255), nullable=False),
    Column("engine", String(32), nullable=False),
    Column("query_id", String(64), nullable=False, index=True),
    Column("query_string", Text, nullable=False),
    Column("fetch_result_time_string", String(64), nullable=False),
)

query_error = Table(
    "query_error",
    metadata_obj,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("datasource", String(255), nullable=False),
    Column("engine", String(32), nullable=False),
    Column("query_id", String(64), nullable=False, index=True),
    Column("query_string", Text, nullable=False),
    Column("error_message", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


class MetadataStore:
    """SQLAlchemy-backed store for history and error rows.

    When a :class:`ResultStore` is attached, every stored error is also
    written to the query's ``.err`` file.

    Args:
        url: SQLAlchemy URL, ignored when ``engine`` is given
        engine: Pre-built engine, mostly for tests
        result_store: Optional store receiving error files
    """

    def __init__(
        self,
        url: Optional[str] = None,
        engine: Optional[Engine] = None,
        result_store: Optional["ResultStore"] = None,
    ):
        if engine is None:
            if url is None:
                raise ValueError("Either url or engine is required")
            engine = create_engine(url, pool_pre_ping=True)
        self.engine = engine
        self.result_store = result_store
        metadata_obj.create_all(self.engine)

    @retry_with_backoff(max_retries=2, initial_delay=0.1, retry_on=(OperationalError,))
    def insert_history(self, datasource: str, engine: str, sql: str, query_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                insert(query_history).values(
                    datasource=datasource,
                    engine=engine,
                    query_id=query_id,
                    query_string=sql,
                    fetch_result_time_string=datetime.now().astimezone().isoformat(),
                )
            )
        logger.info("Query history stored", extra={"history.query_id": query_id})

    @retry_with_backoff(max_retries=2, initial_delay=0.1, retry_on=(OperationalError,))
    def store_error(
        self,
        datasource: str,
        engine: str,
        query_id: str,
        sql: str,
        message: Optional[str],
    ) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                insert(query_error).values(
                    datasource=datasource,
                    engine=engine,
                    query_id=query_id,
                    query_string=sql,
                    error_message=message,
                    created_at=datetime.now(timezone.utc),
                )
            )
        if self.result_store is not None:
            self.result_store.write_error(datasource, query_id, message or "")
        logger.info("Query error stored", extra={"error.query_id": query_id, "error": message})

    def get_history(self, query_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(query_history).where(query_history.c.query_id == query_id)
            ).mappings().first()
        return dict(row) if row is not None else None

    def get_error(self, query_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(query_error).where(query_error.c.query_id == query_id)
            ).mappings().first()
        return dict(row) if row is not None else None

    def dispose(self) -> None:
        self.engine.dispose()
