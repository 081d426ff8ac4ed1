from queryflow.compute.engines.base import BaseSQLEngine, ResultStream
from queryflow.compute.engines.generic import GenericSQLEngine
from queryflow.compute.engines.hive import HiveSQLEngine

__all__ = ["BaseSQLEngine", "ResultStream", "GenericSQLEngine", "HiveSQLEngine"]
