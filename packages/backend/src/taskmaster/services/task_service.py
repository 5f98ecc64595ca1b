"""Task service — owner-scoped task storage.

Learn: Ownership is enforced by the shape of the query, not by a separate
permission check. Every lookup filters on task id AND owner id together:

    WHERE tasks.id = :task_id AND tasks.owner_id = :owner_id

so a task that does not exist and a task that belongs to someone else both
come back as "no row". Callers get the same TaskNotFoundError either way and
learn nothing about other accounts' tasks.

owner_id is only ever taken from the authenticated identity and is never
in the set of updatable fields.
"""

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.db.models import Task

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "due_date", "priority", "status", "assignee"}
)


class TaskNotFoundError(Exception):
    """Task does not exist, or is not owned by the caller."""


class TaskService:
    """Business logic for task CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        owner_id: uuid.UUID,
        title: str,
        due_date: datetime,
        description: str = "",
        priority: str = "medium",
        status: str = "pending",
        assignee: Optional[str] = None,
    ) -> Task:
        task = Task(
            owner_id=owner_id,
            title=title,
            description=description,
            due_date=due_date,
            priority=priority,
            status=status,
            assignee=assignee,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        logger.info("tasks.created", task_id=str(task.id), owner_id=str(owner_id))
        return task

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[Task]:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        )
        return result.scalars().first()

    async def list_tasks(self, owner_id: uuid.UUID) -> list[Task]:
        """All of the owner's tasks, newest first."""
        result = await self.db.execute(
            select(Task)
            .where(Task.owner_id == owner_id)
            .order_by(Task.created_at.desc())
        )
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_task(
        self,
        task_id: uuid.UUID,
        owner_id: uuid.UUID,
        changes: dict,
    ) -> Task:
        """Apply a partial update. Unknown keys are ignored.

        Concurrent updates to the same task are last-write-wins.
        """
        task = await self.get_task(task_id, owner_id)
        if not task:
            raise TaskNotFoundError("Task not found or you do not have permission to update it.")

        applied = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        for field, value in applied.items():
            setattr(task, field, value)

        if applied:
            await self.db.commit()
            await self.db.refresh(task)
            logger.info(
                "tasks.updated", task_id=str(task_id), fields=sorted(applied)
            )
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        task = await self.get_task(task_id, owner_id)
        if not task:
            raise TaskNotFoundError("Task not found or you do not have permission to delete it.")

        await self.db.delete(task)
        await self.db.commit()
        logger.info("tasks.deleted", task_id=str(task_id))
