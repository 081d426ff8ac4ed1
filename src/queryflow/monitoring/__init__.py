from queryflow.monitoring.metrics import QueryMetrics

__all__ = ["QueryMetrics"]
