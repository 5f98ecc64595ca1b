"""Task API routes.

Learn: These routes translate HTTP to TaskService calls. The owner of every
operation is the authenticated caller (identity.account_id) — the request
body can never choose or change it.

- GET    /tasks           → caller's tasks, newest first
- POST   /tasks           → create (201), then email the owner in the background
- PATCH  /tasks/{task_id} → partial update
- DELETE /tasks/{task_id} → delete

PATCH/DELETE on someone else's task return the same 404 as a missing task.
"""

import uuid

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.dependencies import CurrentIdentity, get_current_user
from taskmaster.db.engine import get_db
from taskmaster.schemas.task import (
    TaskCreate,
    TaskDeleted,
    TaskRead,
    TaskResponse,
    TaskUpdate,
)
from taskmaster.services.account_service import AccountService
from taskmaster.services.notifications import (
    Notifier,
    TaskCreatedNotice,
    get_notifier,
)
from taskmaster.services.task_service import TaskNotFoundError, TaskService

logger = structlog.get_logger()

router = APIRouter(prefix="/tasks")


def _task_svc(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db)


def _account_svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


def _parse_task_id(task_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(task_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid task ID format")


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks."""
    try:
        return await svc.list_tasks(identity.account_id)
    except SQLAlchemyError as e:
        logger.error("tasks.list.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error fetching tasks.")


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    background_tasks: BackgroundTasks,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
    accounts: AccountService = Depends(_account_svc),
    notifier: Notifier = Depends(get_notifier),
):
    """Create a task owned by the caller."""
    try:
        task = await svc.create_task(
            owner_id=identity.account_id,
            title=body.title,
            due_date=body.due_date,
            description=body.description,
            priority=body.priority,
            status=body.status,
            assignee=body.assignee,
        )
    except SQLAlchemyError as e:
        logger.error("tasks.create.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error during task creation.")

    # The task is committed at this point. Anything below only affects the
    # notification, never the response.
    try:
        owner = await accounts.get(identity.account_id)
    except SQLAlchemyError as e:
        logger.warning("tasks.create.notify_lookup_failed", error=str(e))
        owner = None

    if owner is not None:
        background_tasks.add_task(
            notifier.notify_task_created,
            TaskCreatedNotice(
                to_email=owner.email,
                username=owner.username,
                title=task.title,
                description=task.description,
                due_date=task.due_date,
                priority=task.priority,
                status=task.status,
                assignee=task.assignee,
            ),
        )
    else:
        logger.warning("tasks.create.owner_missing", owner_id=identity.user_id)

    return {"message": "Task created successfully!", "task": task}


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Partially update one of the caller's tasks."""
    tid = _parse_task_id(task_id)
    try:
        task = await svc.update_task(tid, identity.account_id, body.changes())
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("tasks.update.db_error", task_id=task_id, error=str(e))
        raise HTTPException(status_code=500, detail="Server error updating task.")

    return {"message": "Task updated successfully!", "task": task}


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TaskService = Depends(_task_svc),
):
    """Delete one of the caller's tasks."""
    tid = _parse_task_id(task_id)
    try:
        await svc.delete_task(tid, identity.account_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("tasks.delete.db_error", task_id=task_id, error=str(e))
        raise HTTPException(status_code=500, detail="Server error deleting task.")

    return {"message": "Task deleted successfully!", "task_id": tid}
