"""Settings module providing configuration management for QueryFlow.

Configuration is built on Pydantic Settings and split by domain:

    - base.py: QueryFlowBaseSettings, shared model configuration
    - datasource.py: per-datasource connection coordinates and limits
    - fluentd.py: completion event sink
    - main.py: Settings aggregate, get_settings() singleton and the
      properties-file loader

Configuration Sources (precedence order):
    1. Keyword arguments / properties file (``Settings.from_properties``)
    2. Environment Variables (``QUERYFLOW_`` prefix, ``__`` for nesting)
    3. Default Values in code

Quick Start:
    >>> from queryflow.settings import get_settings
    >>> settings = get_settings()
    >>> url, user, password = settings.connection_coordinates("dw")
"""

from .main import _Settings, get_settings
from .base import QueryFlowBaseSettings
from .datasource import DatasourceSettings
from .fluentd import FluentdSettings

Settings = _Settings

__all__ = [
    "Settings",
    "get_settings",
    "DatasourceSettings",
    "FluentdSettings",
    "QueryFlowBaseSettings",
]
