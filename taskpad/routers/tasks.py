from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..deps import CurrentUser, get_current_user, get_task_store
from ..errors import NotFoundOrNotOwned
from ..schemas.task import Task as TaskSchema, TaskCreate, TaskUpdate
from ..stores import TaskStore

router = APIRouter()


@router.get("/todos", response_model=List[TaskSchema])
def list_tasks(
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Get all tasks owned by the signed-in user."""
    return [TaskSchema.model_validate(task) for task in tasks.list_for_owner(current_user.id)]


@router.post("/todos", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Create a new task for the signed-in user."""
    db_task = tasks.create(
        owner_id=current_user.id,
        title=task.title,
        scheduled_date=task.date,
        scheduled_time=task.time,
        contact_email=task.contact_email,
    )
    return TaskSchema.model_validate(db_task)


@router.patch("/todos/{task_id}", response_model=TaskSchema)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Update fields of a task the signed-in user owns."""
    db_task = tasks.update(task_id, current_user.id, task_update.to_patch())
    if db_task is None:
        raise NotFoundOrNotOwned()
    return TaskSchema.model_validate(db_task)


@router.delete("/todos/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    """Delete a task the signed-in user owns."""
    if not tasks.delete(task_id, current_user.id):
        raise NotFoundOrNotOwned()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
