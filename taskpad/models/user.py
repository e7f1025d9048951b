from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional, List
from uuid import uuid4
import enum

from ..clock import utc_now


class IdentitySource(str, enum.Enum):
    LOCAL = "local"
    EXTERNAL = "external"


class User(SQLModel, table=True):
    """User identity record.

    ``password_hash`` is empty for accounts that only ever signed in through
    an external identity provider; ``external_id`` is the provider's subject.
    """
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str = Field(default="")
    external_id: Optional[str] = Field(default=None, unique=True, index=True)
    identity_source: IdentitySource = Field(default=IdentitySource.LOCAL)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    tasks: List["Task"] = Relationship(
        back_populates="owner",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True},
    )
    sessions: List["SessionRecord"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True},
    )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)
