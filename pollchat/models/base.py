from pydantic import BaseModel, ConfigDict


class BaseModelSchema(BaseModel):
    """Base Pydantic model for request schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
    )


class BaseRecordSchema(BaseModel):
    """Base Pydantic model for records persisted in the store. Values round-trip untouched."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )
