from typing import Any, Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


class QueryFlowBaseSettings(BaseSettings):
    """Base for every settings group.

    Values come from keyword arguments, then environment variables, then a
    ``.env`` file in the working directory. Subclasses set their own
    ``env_prefix``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    @classmethod
    def get_env_prefix(cls) -> str:
        return cls.model_config.get("env_prefix", "")

    def masked_dump(self) -> Dict[str, Any]:
        """Dump values for logging; secrets are rendered as ``**********``."""
        return self.model_dump(mode="json")
