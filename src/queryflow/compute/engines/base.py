import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError

from queryflow.common.exceptions import configuration_error, driver_load_error
from queryflow.logging import get_logger

if TYPE_CHECKING:
    from queryflow.settings import DatasourceSettings

logger = get_logger(__name__)


class ResultStream:
    """Column names plus a one-pass iterator over the rows of a result."""

    def __init__(self, columns: List[str], rows: Iterator[Tuple[Any, ...]]):
        self.columns = columns
        self._rows = rows

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        return self._rows


class BaseSQLEngine:
    """SQLAlchemy-based SQL execution engine for one datasource.

    The SQLAlchemy engine (and its connection pool) is created lazily on the
    first connection and shared by every query against the datasource. Each
    query still gets its own connection, result and cursor, scoped by
    :meth:`connect` and :meth:`stream`.

    Platform Customization:
        Subclasses can override these hooks:
        - build_url(): Turn configured coordinates into a SQLAlchemy URL
        - _engine_options(): Pool and connect arguments
        - _apply_query_timeout(): Server-side statement timeout
        - _apply_job_tag(): Name the remote job after the query id
    """

    def __init__(
        self,
        datasource: str,
        settings: 'DatasourceSettings',
        url: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
    ):
        """Initialize SQL engine.

        Args:
            datasource: Datasource name, used for logging
            settings: Datasource settings
            url: Configured connection URL
            user: Connection user
            password: Connection password
        """
        self.datasource = datasource
        self.settings = settings
        self._url = url
        self._user = user
        self._password = password
        self._engine: Optional[Engine] = None
        self._engine_lock = threading.Lock()
        self._connection_info: Dict[str, Any] = {
            "platform": self.__class__.__name__.replace("SQLEngine", "").lower(),
            "datasource": datasource,
        }

    @property
    def engine(self) -> Engine:
        """Get or create the SQLAlchemy engine; created once even under concurrent first use."""
        if self._engine is None:
            with self._engine_lock:
                if self._engine is None:
                    self._engine = self._create_engine()
        return self._engine

    def build_url(self) -> URL:
        """Parse the configured URL and attach non-empty credentials."""
        try:
            url = make_url(self._url)
        except ArgumentError as exc:
            raise configuration_error(
                f"Invalid connection URL for datasource '{self.datasource}'",
                config_key=f"hive.jdbc.{self.datasource}.url",
                cause=exc,
            ) from exc
        if self._user:
            url = url.set(username=self._user)
        if self._password:
            url = url.set(password=self._password)
        return url

    def _engine_options(self) -> Dict[str, Any]:
        return {"pool_pre_ping": True}

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine.

        Raises:
            QueryFlowError: ENGINE_NOT_AVAILABLE when the dialect or its
                DBAPI module cannot be imported
        """
        url = self.build_url()
        try:
            engine = create_engine(url, **self._engine_options())
        except (NoSuchModuleError, ImportError) as exc:
            raise driver_load_error(url.drivername, cause=exc) from exc

        logger.info(
            "Created SQL engine",
            extra={"db.platform": self._connection_info["platform"], "db.datasource": self.datasource},
        )
        return engine

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Get a database connection from the pool, released on every exit path."""
        conn = self.engine.connect()
        try:
            yield conn
        finally:
            conn.close()

    def prepare_session(self, conn: Connection, query_id: str, max_run_time_seconds: int) -> None:
        """Apply per-query session statements before the query runs."""
        self._apply_query_timeout(conn, max_run_time_seconds)
        if self.settings.job_tag_enabled:
            self._apply_job_tag(conn, query_id)

    def _apply_query_timeout(self, conn: Connection, max_run_time_seconds: int) -> None:
        pass

    def _apply_job_tag(self, conn: Connection, query_id: str) -> None:
        pass

    @contextmanager
    def stream(self, conn: Connection, sql: str) -> Iterator[ResultStream]:
        """Execute ``sql`` and stream its rows.

        The statement is sent as-is to the driver, without bind parameter
        parsing.
        """
        result = conn.execution_options(stream_results=True).exec_driver_sql(sql)
        try:
            if not result.returns_rows:
                yield ResultStream([], iter(()))
                return
            columns = [str(key) for key in result.keys()]
            yield ResultStream(columns, (tuple(row) for row in result))
        finally:
            result.close()

    def dispose(self) -> None:
        with self._engine_lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
