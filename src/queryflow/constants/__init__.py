from queryflow.constants.engine import (
    DEFAULT_FLUENTD_HOST,
    DEFAULT_FLUENTD_PORT,
    DEFAULT_WORKER_POOL_SIZE,
    ENGINE_NAME,
    HIVE_JOB_PREFIX,
    DatasourceType,
    QueryStatus,
)

__all__ = [
    "DatasourceType",
    "QueryStatus",
    "ENGINE_NAME",
    "HIVE_JOB_PREFIX",
    "DEFAULT_WORKER_POOL_SIZE",
    "DEFAULT_FLUENTD_HOST",
    "DEFAULT_FLUENTD_PORT",
]
