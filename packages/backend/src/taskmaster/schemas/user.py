"""Pydantic schemas for accounts, auth and the team directory.

Learn: Separate input and output schemas keep the password hash out of
every response — UserRead simply has no field for it.
- RegisterRequest / TeamMemberCreate: new account input
- LoginRequest: credentials
- ProfileUpdate: the allow-listed profile fields (email and role are not here,
  so they are silently dropped if a client sends them)
- PasswordUpdate: current + new password
- UserRead: sanitized account view
"""

import re
import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from taskmaster.schemas.base import CamelModel

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def normalize_username(value: str) -> str:
    value = value.strip().lower()
    if len(value) < MIN_USERNAME_LENGTH:
        raise ValueError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters long."
        )
    return value


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please provide a valid email address.")
    return value


# ─── Auth ────────────────────────────────────────────────

class RegisterRequest(CamelModel):
    username: str = Field(..., max_length=50)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class UserRead(CamelModel):
    id: uuid.UUID = Field(..., serialization_alias="_id")
    username: str
    email: str
    role: str
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RegisterResponse(CamelModel):
    message: str
    user: UserRead


class LoginResponse(CamelModel):
    message: str
    token: str
    user: UserRead


# ─── Profile ─────────────────────────────────────────────

class ProfileUpdate(CamelModel):
    """Partial update — only fields present in the request body are applied."""
    username: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def _username(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else normalize_username(v)

    @field_validator("phone", "bio", "avatar_url")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else v.strip()

    def changes(self) -> dict:
        """Fields the client actually sent (explicit nulls dropped)."""
        return {
            name: value
            for name, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class PasswordUpdate(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class ProfileResponse(CamelModel):
    message: str
    user: UserRead


# ─── Team ────────────────────────────────────────────────

class TeamMemberCreate(RegisterRequest):
    role: Literal["user", "admin"] = "user"
