"""Engine-related constants and enumerations.

This module defines the datasource types the service can execute against
and the fixed values that appear in history rows, error rows, telemetry
events and remote job names.
"""

from enum import Enum


class DatasourceType(str, Enum):
    """Type of SQL engine behind a datasource.

    Values:
        HIVE: HiveServer2 reached through the PyHive SQLAlchemy dialect.
            - Server-side query timeout via ``hive.query.timeout.seconds``
            - Remote job tagged via ``mapreduce.job.name``
        GENERIC: Any SQLAlchemy URL, no session statements.
    """

    HIVE = "hive"
    GENERIC = "generic"


class QueryStatus(str, Enum):
    """Lifecycle of a single query."""

    NEW = "new"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED_SQL = "failed_sql"
    FAILED_SIZE = "failed_size"
    FAILED_TIMEOUT = "failed_timeout"


# Value of the ``engine`` column in history/error rows and telemetry events
ENGINE_NAME = "hive"

# Remote job name is this prefix followed by the query id
HIVE_JOB_PREFIX = "yanagishima-hive-"

DEFAULT_WORKER_POOL_SIZE = 10

DEFAULT_FLUENTD_HOST = "localhost"
DEFAULT_FLUENTD_PORT = 24224
