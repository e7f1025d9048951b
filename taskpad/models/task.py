from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional
from uuid import uuid4

from ..clock import utc_now


class Task(SQLModel, table=True):
    """Dated/timed task owned by exactly one user."""
    __tablename__ = "tasks"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    owner_id: str = Field(
        sa_column=Column(
            String,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    title: str
    contact_email: Optional[str] = None
    # Free text as entered by the client; no timezone normalisation.
    scheduled_date: str
    scheduled_time: str
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    owner: Optional["User"] = Relationship(back_populates="tasks")
