"""Metrics collection for query execution.

Instruments are created from the active OpenTelemetry meter provider; with
no provider configured they are no-ops.
"""

from typing import Dict

from queryflow.constants.engine import QueryStatus
from queryflow.logging import get_logger
from queryflow.telemetry import get_meter


class QueryMetrics:
    """Collector for per-query counters and histograms.

    Attributes:
        meter: OpenTelemetry meter
        query_counter: Finished queries, labelled by datasource and status
        duration_histogram: Wall-clock duration of finished queries
        result_bytes_histogram: Size of result files of completed queries
    """

    def __init__(self, service_name: str = "queryflow"):
        self.logger = get_logger(__name__)
        self.meter = get_meter(service_name)
        self._setup_instruments()

    def _setup_instruments(self) -> None:
        """Setup OpenTelemetry instruments."""
        self.query_counter = self.meter.create_counter(
            name="queryflow.queries",
            description="Number of finished queries",
            unit="1",
        )
        self.duration_histogram = self.meter.create_histogram(
            name="queryflow.query.duration",
            description="Query duration",
            unit="s",
        )
        self.result_bytes_histogram = self.meter.create_histogram(
            name="queryflow.result.bytes",
            description="Result file size",
            unit="By",
        )

    def record_query(
        self,
        datasource: str,
        status: QueryStatus,
        duration_seconds: float,
        result_bytes: int = 0,
    ) -> None:
        attributes: Dict[str, str] = {"datasource": datasource, "status": status.value}
        self.query_counter.add(1, attributes)
        self.duration_histogram.record(duration_seconds, attributes)
        if status == QueryStatus.COMPLETED:
            self.result_bytes_histogram.record(result_bytes, {"datasource": datasource})
