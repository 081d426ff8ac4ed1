"""HiveServer2 SQL engine.

Connections go through the PyHive SQLAlchemy dialect. Configured URLs may be
given in JDBC form (``jdbc:hive2://host:10000/db;auth=LDAP``) and are
converted to ``hive://`` URLs.
"""

from typing import Any, Dict, TYPE_CHECKING

from sqlalchemy.engine import URL, Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool

from queryflow.common.exceptions import configuration_error
from queryflow.compute.engines.base import BaseSQLEngine
from queryflow.constants.engine import HIVE_JOB_PREFIX
from queryflow.logging import get_logger

if TYPE_CHECKING:
    from queryflow.settings import DatasourceSettings

logger = get_logger(__name__)

JDBC_HIVE2_PREFIX = "jdbc:hive2://"

# JDBC auth spellings (case-insensitive) to the modes PyHive accepts
_AUTH_MODES = {
    "none": "NONE",
    "nosasl": "NOSASL",
    "ldap": "LDAP",
    "kerberos": "KERBEROS",
    "custom": "CUSTOM",
}


def parse_jdbc_url(jdbc_url: str) -> Dict[str, Any]:
    """Split a ``jdbc:hive2://`` URL into host, port, database and session params."""
    remainder = jdbc_url[len(JDBC_HIVE2_PREFIX):]
    location, *session = remainder.split(";")
    host_port, _, database = location.partition("/")
    host, _, port = host_port.partition(":")
    params = {}
    for item in session:
        key, sep, value = item.partition("=")
        if sep and key:
            params[key.strip()] = value.strip()
    return {
        "host": host or None,
        "port": int(port) if port else None,
        "database": database or None,
        "params": params,
    }


class HiveSQLEngine(BaseSQLEngine):
    """SQL engine for Hive.

    Adds the server-side query timeout and the remote job name on top of
    :class:`BaseSQLEngine`.
    """

    settings: 'DatasourceSettings'

    def build_url(self) -> URL:
        if not self._url.startswith(JDBC_HIVE2_PREFIX):
            return super().build_url()

        parts = parse_jdbc_url(self._url)
        query = {}
        password = self._password or None
        auth = parts["params"].get("auth")
        if auth:
            query["auth"] = self._auth_mode(auth)
            # PyHive only accepts a password in LDAP or CUSTOM mode
            if query["auth"] not in ("LDAP", "CUSTOM"):
                password = None
        elif password:
            query["auth"] = "LDAP"

        return URL.create(
            "hive",
            username=self._user or None,
            password=password,
            host=parts["host"],
            port=parts["port"],
            database=parts["database"],
            query=query,
        )

    def _auth_mode(self, auth: str) -> str:
        try:
            return _AUTH_MODES[auth.lower()]
        except KeyError:
            raise configuration_error(
                f"Unsupported auth mode '{auth}' for datasource '{self.datasource}'",
                config_key=f"hive.jdbc.{self.datasource}.url",
                details={"supported": sorted(_AUTH_MODES)},
            ) from None

    def _engine_options(self) -> Dict[str, Any]:
        return {
            "poolclass": QueuePool,
            "pool_pre_ping": True,
            "pool_size": self.settings.pool_size,
            "max_overflow": self.settings.max_overflow,
            "pool_timeout": self.settings.pool_timeout,
        }

    def _apply_query_timeout(self, conn: Connection, max_run_time_seconds: int) -> None:
        if max_run_time_seconds > 0:
            conn.exec_driver_sql(f"set hive.query.timeout.seconds={max_run_time_seconds}s")

    def _apply_job_tag(self, conn: Connection, query_id: str) -> None:
        job_name = HIVE_JOB_PREFIX + query_id
        try:
            conn.exec_driver_sql(f"set mapreduce.job.name={job_name}")
        except SQLAlchemyError as exc:
            if not self.settings.job_tag_best_effort:
                raise
            logger.warning(
                "Job tag statement rejected, continuing without it",
                extra={"db.datasource": self.datasource, "job_name": job_name, "error": str(exc)},
            )
