"""Query submission and result types."""

from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_serializer

from queryflow.types.base import QueryFlowBaseModel


class DataSizeUnit(str, Enum):
    BYTE = "B"
    KILOBYTE = "KB"
    MEGABYTE = "MB"
    GIGABYTE = "GB"
    TERABYTE = "TB"


_UNITS = list(DataSizeUnit)
_RADIX = 1024


class DataSize(QueryFlowBaseModel):
    """A byte quantity expressed in one of B, KB, MB, GB or TB (radix 1024)."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    value: float = Field(..., ge=0)
    unit: DataSizeUnit = DataSizeUnit.BYTE

    @classmethod
    def of_bytes(cls, size: int) -> "DataSize":
        return cls(value=float(size), unit=DataSizeUnit.BYTE)

    def to_bytes(self) -> float:
        return self.value * _RADIX ** _UNITS.index(self.unit)

    def convert_to(self, unit: DataSizeUnit) -> "DataSize":
        return DataSize(value=self.to_bytes() / _RADIX ** _UNITS.index(unit), unit=unit)

    def succinct(self) -> "DataSize":
        """Return the same size in the largest unit whose value is at least 1."""
        size = self.to_bytes()
        unit = DataSizeUnit.BYTE
        for candidate in _UNITS:
            if size / _RADIX ** _UNITS.index(candidate) >= 1:
                unit = candidate
        return self.convert_to(unit)

    @field_serializer("unit")
    def _serialize_unit(self, unit: DataSizeUnit) -> str:
        return unit.value

    def __str__(self) -> str:
        return f"{self.value:.2f}{self.unit.value}"


class QuerySubmission(QueryFlowBaseModel):
    """A query as submitted by a caller. Immutable."""

    model_config = ConfigDict(frozen=True)

    datasource: str
    sql: str
    user: Optional[str] = None
    store_history: bool = True
    row_limit: int = Field(..., ge=0)

    @property
    def is_show_query(self) -> bool:
        """``show ...`` queries keep every row regardless of the row limit."""
        return self.sql.lower().startswith("show")


class QueryResult(QueryFlowBaseModel):
    """In-memory summary of a completed query.

    Attributes:
        query_id: Identifier shared by the result file, history row and events
        columns: Column names in result order
        records: Retained rows, each a list of nullable strings
        line_number: Lines in the result file, header included
        raw_data_size: On-disk size of the result file
        warning_message: Set when rows past the row limit were not retained
    """

    model_config = ConfigDict(validate_assignment=False)

    query_id: str
    columns: List[str] = Field(default_factory=list)
    records: List[List[Optional[str]]] = Field(default_factory=list)
    line_number: int = Field(default=0, ge=0)
    raw_data_size: Optional[DataSize] = None
    warning_message: Optional[str] = None
