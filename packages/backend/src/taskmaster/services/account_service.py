"""Account service — the credential store.

Learn: Everything that reads or writes the users table goes through here:
registration (and team-member creation, which is the same operation with a
caller-chosen role), login verification, profile and password updates, and
the team directory listing.

Uniqueness is checked with a lookup before insert. The unique constraints on
username/email are the real guarantee though: two concurrent registrations can
both pass the lookup, and the loser's IntegrityError on commit is reported as
the same DuplicateAccountError.

Passwords only ever exist here as bcrypt hashes; nothing in this module logs
or returns a plaintext password or a hash.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.password import hash_password, verify_password
from taskmaster.db.models import User

logger = structlog.get_logger()


class DuplicateAccountError(Exception):
    """Username or email already belongs to another account."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"User with this {field} already exists.")


class InvalidCredentialsError(Exception):
    """Unknown email, or password does not match."""


class InvalidPasswordError(Exception):
    """The new password is not acceptable (e.g. same as the current one)."""


class AccountNotFoundError(Exception):
    pass


class AccountService:
    """Business logic for accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: str = "user",
    ) -> User:
        """Create an account. username/email arrive already normalized."""
        q = select(User).where(or_(User.email == email, User.username == username))
        existing = (await self.db.execute(q)).scalars().first()
        if existing:
            field = "email" if existing.email == email else "username"
            logger.info("accounts.register.duplicate", field=field)
            raise DuplicateAccountError(field)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same username/email.
            await self.db.rollback()
            logger.info("accounts.register.duplicate_on_insert")
            raise DuplicateAccountError("username or email")

        await self.db.refresh(user)
        logger.info("accounts.registered", user_id=str(user.id), role=role)
        return user

    # ─── Read ────────────────────────────────────────────

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def authenticate(self, email: str, password: str) -> User:
        """Return the account for valid credentials.

        Learn: A missing account and a wrong password raise the exact same
        error, so the login endpoint cannot be used to probe which emails
        are registered.
        """
        q = select(User).where(User.email == email)
        user = (await self.db.execute(q)).scalars().first()

        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials.")
        return user

    async def list_all(self) -> list[User]:
        """Every account, alphabetical by username (team directory)."""
        result = await self.db.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_profile(
        self,
        user_id: uuid.UUID,
        username: Optional[str] = None,
        phone: Optional[str] = None,
        bio: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        """Apply the allow-listed profile fields that were supplied.

        Email and role are not parameters here, so there is no way to change
        them through a profile update.
        """
        user = await self.get(user_id)
        if not user:
            raise AccountNotFoundError("User not found.")

        if username is not None and username != user.username:
            q = select(User.id).where(User.username == username, User.id != user_id)
            if (await self.db.execute(q)).first():
                raise DuplicateAccountError("username")
            user.username = username
        if phone is not None:
            user.phone = phone
        if bio is not None:
            user.bio = bio
        if avatar_url is not None:
            user.avatar_url = avatar_url

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateAccountError("username")

        await self.db.refresh(user)
        return user

    async def update_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """Replace the password after verifying the current one."""
        if current_password == new_password:
            raise InvalidPasswordError(
                "New password cannot be the same as the current password."
            )

        user = await self.get(user_id)
        if not user:
            raise AccountNotFoundError("User not found.")

        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError("Incorrect current password.")

        user.password_hash = hash_password(new_password)
        await self.db.commit()
        logger.info("accounts.password_changed", user_id=str(user_id))
