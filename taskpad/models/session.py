from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional

from ..clock import utc_now


class SessionRecord(SQLModel, table=True):
    """Durable server-side session; the payload is only the owning user id."""
    __tablename__ = "sessions"

    sid: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(
        sa_column=Column(
            String,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    expires_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    user: Optional["User"] = Relationship(back_populates="sessions")
