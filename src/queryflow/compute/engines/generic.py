"""Engine for any SQLAlchemy URL. No session statements are issued."""

from queryflow.compute.engines.base import BaseSQLEngine


class GenericSQLEngine(BaseSQLEngine):
    pass
