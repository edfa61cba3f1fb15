"""Base model configuration for all Pydantic models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RegistryBaseModel(BaseModel):
    """Base model with common configuration.

    Conventions:
    - All timestamps are ISO 8601 format with timezone (UTC preferred)
    - Field names are lowercase snake_case
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
        json_encoders={
            datetime: lambda v: v.isoformat(),
        },
    )
