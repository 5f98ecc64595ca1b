"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task (title + dueDate required)
- TaskUpdate: what you PATCH to modify a task (all optional)
- TaskRead: what the API returns

There is no owner field on TaskCreate or TaskUpdate. The owner always
comes from the bearer token and anything else a client sends is ignored.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from taskmaster.schemas.base import CamelModel

Priority = Literal["high", "medium", "low"]
Status = Literal["pending", "in-progress", "completed"]

MIN_TITLE_LENGTH = 3


def _clean_title(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_TITLE_LENGTH:
        raise ValueError(
            f"Title must be at least {MIN_TITLE_LENGTH} characters long."
        )
    return value


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps (e.g. "2025-01-01") are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TaskCreate(CamelModel):
    title: str = Field(..., max_length=500)
    description: Optional[str] = ""
    due_date: datetime
    priority: Priority = "medium"
    status: Status = "pending"
    assignee: Optional[str] = Field(None, max_length=200)

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def _description(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("assignee")
    @classmethod
    def _assignee(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("due_date")
    @classmethod
    def _due_date(cls, v: datetime) -> datetime:
        return _as_utc(v)


class TaskUpdate(CamelModel):
    """Partial update — only fields present in the body are applied."""
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assignee: Optional[str] = Field(None, max_length=200)

    @field_validator("description")
    @classmethod
    def _description(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("title")
    @classmethod
    def _title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("due_date")
    @classmethod
    def _due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else _as_utc(v)

    @model_validator(mode="after")
    def _no_null_required_fields(self):
        for name in ("title", "due_date", "priority", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class TaskRead(CamelModel):
    id: uuid.UUID = Field(..., serialization_alias="_id")
    owner_id: uuid.UUID
    title: str
    description: str
    due_date: datetime
    priority: str
    status: str
    assignee: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskResponse(CamelModel):
    message: str
    task: TaskRead


class TaskDeleted(CamelModel):
    message: str
    task_id: uuid.UUID
