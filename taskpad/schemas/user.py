from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

from ..clock import as_utc
from ..models import IdentitySource


class UserCreate(BaseModel):
    name: str
    email: str
    password: str


class UserLogin(BaseModel):
    email: str
    password: str


class ExternalAuthRequest(BaseModel):
    token: Optional[str] = None


class User(BaseModel):
    """Public view of an account; never carries the password hash."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    email: str
    identity_source: IdentitySource
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class UserResponse(BaseModel):
    user: User


class MessageResponse(BaseModel):
    message: str
