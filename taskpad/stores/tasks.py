import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, update
from sqlmodel import Session, select

from ..errors import ValidationError
from ..models import Task

logger = logging.getLogger(__name__)

# Model field -> name the client sees.
REQUIRED_FIELDS = {"title": "title", "scheduled_date": "date", "scheduled_time": "time"}
PATCHABLE_FIELDS = {"title", "contact_email", "scheduled_date", "scheduled_time", "completed"}


def _require_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class TaskStore:
    """Task persistence. Every read and write is filtered by owner id."""

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, task_id: str, owner_id: str):
        return and_(Task.id == task_id, Task.owner_id == owner_id)

    def list_for_owner(self, owner_id: str) -> List[Task]:
        statement = (
            select(Task)
            .where(Task.owner_id == owner_id)
            .order_by(Task.created_at, Task.id)
        )
        return list(self.db.exec(statement).all())

    def get(self, task_id: str, owner_id: str) -> Optional[Task]:
        return self.db.exec(select(Task).where(self._owned(task_id, owner_id))).first()

    def create(
        self,
        owner_id: str,
        title: str,
        scheduled_date: str,
        scheduled_time: str,
        contact_email: Optional[str] = None,
    ) -> Task:
        task = Task(
            owner_id=owner_id,
            title=_require_text("title", title),
            scheduled_date=_require_text("date", scheduled_date),
            scheduled_time=_require_text("time", scheduled_time),
            contact_email=contact_email or None,
            completed=False,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.debug("Created task %s for user %s", task.id, owner_id)
        return task

    def update(self, task_id: str, owner_id: str, patch: Dict[str, Any]) -> Optional[Task]:
        """Apply ``patch`` to the task if, and only if, ``owner_id`` owns it.

        The ownership filter is part of the UPDATE statement itself. Returns
        None when no such task exists for this owner.
        """
        values = {key: value for key, value in patch.items() if key in PATCHABLE_FIELDS}
        for field, label in REQUIRED_FIELDS.items():
            if field in values:
                values[field] = _require_text(label, values[field])
        if "completed" in values and not isinstance(values["completed"], bool):
            raise ValidationError("completed must be a boolean")

        if values:
            result = self.db.exec(
                update(Task)
                .where(self._owned(task_id, owner_id))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.rollback()
                return None
            self.db.commit()

        task = self.get(task_id, owner_id)
        if task is not None:
            self.db.refresh(task)
        return task

    def delete(self, task_id: str, owner_id: str) -> bool:
        result = self.db.exec(
            delete(Task)
            .where(self._owned(task_id, owner_id))
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.debug("Deleted task %s for user %s", task_id, owner_id)
        return deleted
