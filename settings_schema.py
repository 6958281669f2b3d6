import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator


class SettingsSchema(BaseModel):
    language: Literal["en", "sv"] = "en"
    weight_unit: Literal["kg"] = "kg"
    log_level: str = "INFO"
    rest_timer_seconds: int = Field(default=90, ge=0)
    pt_chat_api_key: Optional[str | bool | int] = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if not isinstance(logging.getLevelName(value.upper()), int):
            raise ValueError(f"unknown log level: {value}")
        return value.upper()


def validate_settings(data: dict) -> SettingsSchema:
    """Return the parsed settings or raise ``ValueError`` describing the problem."""
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
