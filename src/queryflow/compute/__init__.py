"""SQL engines and the per-datasource engine factory."""

from queryflow.compute.engines import BaseSQLEngine, GenericSQLEngine, HiveSQLEngine, ResultStream
from queryflow.compute.factory import SQLEngineFactory

__all__ = [
    "BaseSQLEngine",
    "GenericSQLEngine",
    "HiveSQLEngine",
    "ResultStream",
    "SQLEngineFactory",
]
