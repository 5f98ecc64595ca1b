"""Current-user API — profile and password.

- GET   /user/profile  → the caller's account
- PATCH /user/profile  → username, phone, bio, avatarUrl (anything else ignored)
- PATCH /user/password → currentPassword + newPassword
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.dependencies import CurrentIdentity, get_current_user
from taskmaster.db.engine import get_db
from taskmaster.schemas.base import MessageResponse
from taskmaster.schemas.user import (
    PasswordUpdate,
    ProfileResponse,
    ProfileUpdate,
    UserRead,
)
from taskmaster.services.account_service import (
    AccountNotFoundError,
    AccountService,
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidPasswordError,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/user")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


@router.get("/profile", response_model=UserRead)
async def get_profile(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    user = await svc.get(identity.account_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    """Update the caller's profile. Email and role cannot be changed here."""
    changes = body.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields provided for update.")

    try:
        user = await svc.update_profile(identity.account_id, **changes)
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateAccountError:
        raise HTTPException(status_code=400, detail="Username already taken.")
    except SQLAlchemyError as e:
        logger.error("user.profile.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error updating profile.")

    logger.info("user.profile_updated", fields=sorted(changes))
    return {"message": "Profile updated successfully!", "user": user}


@router.patch("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    """Change the caller's password after verifying the current one."""
    try:
        await svc.update_password(
            identity.account_id,
            current_password=body.current_password,
            new_password=body.new_password,
        )
    except InvalidPasswordError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AccountNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("user.password.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error updating password.")

    return MessageResponse(message="Password updated successfully!")
