"""Per-datasource connection coordinates and execution policy."""

from typing import Optional

from pydantic import Field, SecretStr

from queryflow.constants.engine import DatasourceType
from queryflow.types.base import QueryFlowBaseModel


class DatasourceSettings(QueryFlowBaseModel):
    """Settings for one named datasource.

    ``url``, ``user`` and ``password`` are optional at load time so that a
    partially configured datasource can still be listed; they are required
    when a query is executed against it.
    """

    type: DatasourceType = Field(
        default=DatasourceType.HIVE,
        description="Engine behind this datasource, selects the SQL engine implementation"
    )
    url: Optional[str] = Field(
        default=None,
        description="Connection URL. Hive accepts jdbc:hive2:// URLs, generic accepts any SQLAlchemy URL"
    )
    user: Optional[str] = Field(default=None, description="Connection user")
    password: Optional[SecretStr] = Field(default=None, description="Connection password")

    query_max_run_time_seconds: int = Field(
        default=3600,
        ge=0,
        description="Wall-clock cap for a single query, enforced server side and per fetched row"
    )

    job_tag_enabled: bool = Field(
        default=True,
        description="Tag the remote job with the query id (hive only)"
    )
    job_tag_best_effort: bool = Field(
        default=False,
        description="Ignore failures of the job tag statement instead of aborting the query"
    )

    pool_size: int = Field(default=5, ge=1, le=100)
    pool_timeout: int = Field(default=30, ge=1)
    max_overflow: int = Field(default=10, ge=0)
