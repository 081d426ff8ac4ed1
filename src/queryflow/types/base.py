from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class QueryFlowBaseModel(BaseModel):
    """Shared pydantic configuration for queryflow models.

    Enums are stored by value and assignments are validated.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        use_enum_values=True,
        validate_assignment=True
    )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible dict; ``None`` fields are kept as explicit nulls."""
        return self.model_dump(mode="json")
