from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from queryflow.constants.engine import DEFAULT_FLUENTD_HOST, DEFAULT_FLUENTD_PORT
from .base import QueryFlowBaseSettings


class FluentdSettings(QueryFlowBaseSettings):
    """Completion event sink. Absence of ``executed_tag`` disables it."""

    model_config = SettingsConfigDict(env_prefix="FLUENTD_", case_sensitive=False, extra="ignore")

    executed_tag: Optional[str] = Field(
        default=None,
        description="Tag for the event emitted when a query completes"
    )
    host: str = Field(default=DEFAULT_FLUENTD_HOST)
    port: int = Field(default=DEFAULT_FLUENTD_PORT, ge=1, le=65535)

    @property
    def is_enabled(self) -> bool:
        return bool(self.executed_tag)
