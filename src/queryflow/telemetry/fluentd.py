"""Completion events sent to fluentd.

One sender is opened per query and closed (flushing its buffer) once the
event is emitted. Failures never reach the caller: the query already
succeeded and its result is returned regardless.
"""

from typing import Any, Dict, Optional

from fluent import sender

from queryflow.constants.engine import ENGINE_NAME
from queryflow.logging import get_logger
from queryflow.settings.fluentd import FluentdSettings

logger = get_logger(__name__)


def build_executed_event(
    *,
    elapsed_millis: int,
    user: Optional[str],
    query: str,
    query_id: str,
    datasource: str,
) -> Dict[str, Any]:
    # "millseconds" is the field name downstream consumers already index on
    return {
        "elapsed_time_millseconds": elapsed_millis,
        "user": user,
        "query": query,
        "query_id": query_id,
        "datasource": datasource,
        "engine": ENGINE_NAME,
    }


class FluentdEventSink:
    """Emits structured events under a fixed tag."""

    def __init__(self, settings: FluentdSettings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.is_enabled

    def emit(self, event: Dict[str, Any]) -> bool:
        """Send ``event`` under the configured tag.

        Returns:
            True if the event was handed to fluentd, False otherwise
        """
        if not self.enabled:
            return False

        tag = self.settings.executed_tag
        fluent_sender = sender.FluentSender(tag, host=self.settings.host, port=self.settings.port)
        try:
            if fluent_sender.emit(None, event):
                return True
            logger.error(
                "Failed to emit fluentd event",
                extra={"fluentd.tag": tag, "error": str(fluent_sender.last_error)},
            )
            fluent_sender.clear_last_error()
            return False
        except Exception as exc:
            logger.error(
                "Failed to emit fluentd event",
                extra={"fluentd.tag": tag, "error": str(exc)},
                exc_info=True,
            )
            return False
        finally:
            try:
                fluent_sender.close()
            except Exception as exc:
                logger.error(
                    "Failed to close fluentd sender",
                    extra={"fluentd.tag": tag, "error": str(exc)},
                    exc_info=True,
                )
