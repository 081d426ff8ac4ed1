import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from queryflow.common.exceptions import configuration_error
from queryflow.constants.engine import DEFAULT_WORKER_POOL_SIZE
from .base import QueryFlowBaseSettings
from .datasource import DatasourceSettings
from .fluentd import FluentdSettings

logger = logging.getLogger(__name__)

_HIVE_JDBC_PREFIX = "hive.jdbc."
_MAX_RUN_TIME_KEY = "hive.query.max-run-time-seconds"


class _Settings(QueryFlowBaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="QUERYFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    select_limit: int = Field(
        default=500,
        ge=0,
        description="Rows kept in memory for asynchronous submissions"
    )
    max_result_file_byte_size: int = Field(
        default=1073741824,
        ge=0,
        description="Hard cap on the size of a single result file"
    )
    result_dir: Path = Field(
        default=Path("result"),
        description="Root directory of result and error files"
    )
    metadata_url: str = Field(
        default="sqlite:///queryflow.db",
        description="SQLAlchemy URL of the query history/error store"
    )

    worker_pool_size: int = Field(
        default=DEFAULT_WORKER_POOL_SIZE,
        ge=1,
        le=100,
        description="Worker threads running asynchronous submissions"
    )
    max_queued_queries: int = Field(
        default=1000,
        ge=0,
        description="Submissions allowed to wait for a free worker before new ones are rejected"
    )

    log_level: str = Field(default="INFO")

    fluentd: FluentdSettings = Field(
        default_factory=FluentdSettings,
        description="Completion event sink"
    )
    datasources: Dict[str, DatasourceSettings] = Field(
        default_factory=dict,
        description="Named datasources"
    )

    def get_datasource(self, datasource: str) -> DatasourceSettings:
        try:
            return self.datasources[datasource]
        except KeyError:
            raise configuration_error(
                f"Datasource '{datasource}' is not configured",
                config_key=f"datasources.{datasource}",
            ) from None

    def connection_coordinates(self, datasource: str) -> Tuple[str, str, str]:
        """Return ``(url, user, password)`` for a datasource.

        Raises:
            QueryFlowError: CONFIG_MISSING if the datasource or any of the
                three values is not configured.
        """
        ds = self.get_datasource(datasource)
        for key in ("url", "user", "password"):
            if getattr(ds, key) is None:
                raise configuration_error(
                    f"hive.jdbc.{datasource}.{key} is not configured",
                    config_key=f"hive.jdbc.{datasource}.{key}",
                )
        return ds.url, ds.user, ds.password.get_secret_value()

    def query_max_run_time_seconds(self, datasource: str) -> int:
        return self.get_datasource(datasource).query_max_run_time_seconds

    @classmethod
    def from_properties(cls, path: Union[str, Path], **overrides: Any) -> "_Settings":
        """Build settings from a Java-style properties file.

        Recognised keys are ``hive.jdbc.<ds>.{url,user,password}``,
        ``hive.query.max-run-time-seconds[.<ds>]``, ``select.limit``,
        ``max.result.file.byte.size`` and ``fluentd.{executed.tag,host,port}``.
        Everything else is ignored. Keyword overrides win over the file.
        """
        properties = _read_properties(Path(path))

        datasources: Dict[str, Dict[str, Any]] = {}
        default_run_time = properties.get(_MAX_RUN_TIME_KEY)

        for key, value in properties.items():
            if key.startswith(_HIVE_JDBC_PREFIX):
                name, _, field = key[len(_HIVE_JDBC_PREFIX):].rpartition(".")
                if name and field in ("url", "user", "password"):
                    datasources.setdefault(name, {})[field] = value
            elif key.startswith(_MAX_RUN_TIME_KEY + "."):
                name = key[len(_MAX_RUN_TIME_KEY) + 1:]
                datasources.setdefault(name, {})["query_max_run_time_seconds"] = int(value)

        if default_run_time is not None:
            for values in datasources.values():
                values.setdefault("query_max_run_time_seconds", int(default_run_time))

        data: Dict[str, Any] = {"datasources": datasources}
        if "select.limit" in properties:
            data["select_limit"] = int(properties["select.limit"])
        if "max.result.file.byte.size" in properties:
            data["max_result_file_byte_size"] = int(properties["max.result.file.byte.size"])

        fluentd: Dict[str, Any] = {}
        if "fluentd.executed.tag" in properties:
            fluentd["executed_tag"] = properties["fluentd.executed.tag"]
        if "fluentd.host" in properties:
            fluentd["host"] = properties["fluentd.host"]
        if "fluentd.port" in properties:
            fluentd["port"] = int(properties["fluentd.port"])
        if fluentd:
            data["fluentd"] = FluentdSettings(**fluentd)

        data.update(overrides)
        logger.debug("Loaded %d datasources from %s", len(datasources), path)
        return cls(**data)


def _read_properties(path: Path) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    with path.open(encoding="utf-8") as fh:
        for raw in fh:
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            separators = [i for i in (line.find("="), line.find(":")) if i >= 0]
            if not separators:
                properties[line] = ""
                continue
            index = min(separators)
            properties[line[:index].strip()] = line[index + 1:].strip()
    return properties


# Singleton instance
_settings: Optional[_Settings] = None


def get_settings(force_reload: bool = False) -> _Settings:
    """Get the singleton settings instance for the application.

    Settings are loaded from ``QUERYFLOW_`` environment variables and the
    ``.env`` file on first access.

    Args:
        force_reload: If True, creates a new Settings instance even if
                     one already exists.

    Returns:
        Settings: The singleton Settings instance
    """
    global _settings

    if _settings is None or force_reload:
        _settings = _Settings()

    return _settings


def _reload_settings() -> _Settings:
    """Force reload of settings, primarily for tests."""
    global _settings
    _settings = None
    return get_settings(force_reload=True)
