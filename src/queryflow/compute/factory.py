"""Engine factory for datasources.

Selects the engine implementation from the datasource's
:class:`DatasourceType` and keeps one engine, and so one connection pool,
per datasource. Creation is guarded by a lock so that pool workers asking
for the same datasource at once share a single engine.
"""

import threading
from typing import TYPE_CHECKING, Dict, Type

from queryflow.common.exceptions import platform_not_supported_error
from queryflow.compute.engines.base import BaseSQLEngine
from queryflow.compute.engines.generic import GenericSQLEngine
from queryflow.compute.engines.hive import HiveSQLEngine
from queryflow.constants.engine import DatasourceType
from queryflow.logging import get_logger

if TYPE_CHECKING:
    from queryflow.settings import Settings

logger = get_logger(__name__)


class SQLEngineFactory:
    """Hands out one shared SQL engine per configured datasource."""

    _engine_classes: Dict[DatasourceType, Type[BaseSQLEngine]] = {
        DatasourceType.HIVE: HiveSQLEngine,
        DatasourceType.GENERIC: GenericSQLEngine,
    }

    def __init__(self, settings: 'Settings'):
        self.settings = settings
        self._engines: Dict[str, BaseSQLEngine] = {}
        self._lock = threading.Lock()

    def get(self, datasource: str) -> BaseSQLEngine:
        """Return the engine for ``datasource``.

        Connection coordinates are resolved on every call so that a missing
        url, user or password fails the submission before any connection is
        attempted.

        Raises:
            QueryFlowError: CONFIG_MISSING or PLATFORM_NOT_SUPPORTED
        """
        url, user, password = self.settings.connection_coordinates(datasource)

        with self._lock:
            engine = self._engines.get(datasource)
            if engine is None:
                ds_settings = self.settings.get_datasource(datasource)
                try:
                    datasource_type = DatasourceType(ds_settings.type)
                    engine_class = self._engine_classes[datasource_type]
                except (ValueError, KeyError):
                    raise platform_not_supported_error(str(ds_settings.type)) from None

                engine = engine_class(datasource, ds_settings, url, user, password)
                self._engines[datasource] = engine
                logger.info(
                    "Registered SQL engine",
                    extra={"db.datasource": datasource, "db.platform": datasource_type.value},
                )
            return engine

    def dispose(self) -> None:
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
