"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Key concepts:
- UUID primary keys (generic Uuid type, native on PostgreSQL, CHAR(32) on SQLite)
- Python-side timestamp defaults so created_at/updated_at behave the same
  on every backend; updated_at advances on each UPDATE via onupdate
- Every task row carries exactly one owner_id, set once at creation
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


USER_ROLES = ("user", "admin")
TASK_PRIORITIES = ("high", "medium", "low")
TASK_STATUSES = ("pending", "in-progress", "completed")

DEFAULT_AVATAR_URL = "https://www.gravatar.com/avatar/?d=mp"


class User(Base):
    """An account: login identity, password hash and profile.

    Learn: username and email are normalized (stripped, lower-cased) before
    they reach this table, so the unique constraints are effectively
    case-insensitive. password_hash is the only secret column and is never
    part of any response schema.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="user"
    )  # user, admin
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str] = mapped_column(
        String(500), nullable=False, default=DEFAULT_AVATAR_URL
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    tasks: Mapped[list["Task"]] = relationship(back_populates="owner")


class Task(Base):
    """A unit of work owned by exactly one account.

    Learn: owner_id is the ownership boundary. Every query in TaskService
    filters on (id, owner_id) together, so another account's task looks
    exactly like a missing one.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default="medium"
    )  # high, medium, low
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, in-progress, completed
    assignee: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owner: Mapped["User"] = relationship(back_populates="tasks")
