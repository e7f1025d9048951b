from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from ..clock import as_utc


class TaskCreate(BaseModel):
    """Schema for creating new tasks.

    Unknown keys (``ownerId``, ``userId`` ...) are ignored: the owner always
    comes from the session.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    date: str = Field(min_length=1)
    time: str = Field(min_length=1)


class TaskUpdate(BaseModel):
    """Schema for partial updates; only the keys the client sent are applied."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    date: Optional[str] = None
    time: Optional[str] = None
    completed: Optional[bool] = None

    def to_patch(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        renames = {"date": "scheduled_date", "time": "scheduled_time"}
        return {renames.get(key, key): value for key, value in data.items()}


class Task(BaseModel):
    """Task as returned to the owner."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    title: str
    contact_email: Optional[str] = None
    date: str = Field(validation_alias="scheduled_date", serialization_alias="date")
    time: str = Field(validation_alias="scheduled_time", serialization_alias="time")
    completed: bool
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
