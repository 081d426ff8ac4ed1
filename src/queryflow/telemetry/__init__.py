"""OpenTelemetry entry points.

Instrumentation goes through the API only; without an SDK configured by the
host application every tracer and meter is a no-op.
"""

from typing import Optional

from opentelemetry import metrics, trace

from queryflow.__version__ import __version__

INSTRUMENTATION_NAME = "queryflow"

__all__ = [
    "INSTRUMENTATION_NAME",
    "get_tracer",
    "get_meter",
]


def get_tracer(name: Optional[str] = None) -> trace.Tracer:
    return trace.get_tracer(name or INSTRUMENTATION_NAME, __version__)


def get_meter(name: Optional[str] = None) -> metrics.Meter:
    return metrics.get_meter(name or INSTRUMENTATION_NAME, __version__)
