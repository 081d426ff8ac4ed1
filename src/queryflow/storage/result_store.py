"""Result and error file locations.

Files live under ``<result_dir>/<datasource>/<yyyymmdd>/`` where
``yyyymmdd`` is taken from the query id, so every file of a given day sits
in one directory.
"""

from pathlib import Path
from typing import Union

from queryflow.logging import get_logger

logger = get_logger(__name__)


class ResultStore:
    """Resolves result and error file paths under ``result_dir``, creating day directories on demand."""

    def __init__(self, result_dir: Union[str, Path]):
        self.result_dir = Path(result_dir)

    def _day_dir(self, datasource: str, query_id: str) -> Path:
        day_dir = self.result_dir / datasource / query_id[:8]
        day_dir.mkdir(parents=True, exist_ok=True)
        return day_dir

    def result_path(self, datasource: str, query_id: str) -> Path:
        return self._day_dir(datasource, query_id) / f"{query_id}.json"

    def error_path(self, datasource: str, query_id: str) -> Path:
        return self._day_dir(datasource, query_id) / f"{query_id}.err"

    def write_error(self, datasource: str, query_id: str, message: str) -> Path:
        path = self.error_path(datasource, query_id)
        path.write_text(message, encoding="utf-8")
        logger.debug("Wrote error file", extra={"path": str(path)})
        return path
