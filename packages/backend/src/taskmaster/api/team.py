"""Team directory API.

Learn: The "team" is flat — it is simply every account in the system.

- GET  /team/members → all accounts (sanitized), sorted by username.
  Open to any authenticated caller, no per-caller filtering.
- POST /team/members → create an account with a chosen role.
  Who may do this is a named policy, settings.allow_any_user_to_manage_team:
  true (default) lets any authenticated caller add members; false requires
  the caller's token to carry role "admin".
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmaster.auth.dependencies import CurrentIdentity, get_current_user
from taskmaster.config import settings
from taskmaster.db.engine import get_db
from taskmaster.schemas.user import RegisterResponse, TeamMemberCreate, UserRead
from taskmaster.services.account_service import AccountService, DuplicateAccountError

logger = structlog.get_logger()

router = APIRouter(prefix="/team")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


def require_team_manager(
    identity: CurrentIdentity = Depends(get_current_user),
) -> CurrentIdentity:
    """Apply the team-management policy to the caller."""
    if not settings.allow_any_user_to_manage_team and not identity.is_admin:
        logger.info("team.add_member.forbidden", role=identity.role)
        raise HTTPException(
            status_code=403, detail="Only admins can add team members."
        )
    return identity


@router.get("/members", response_model=list[UserRead])
async def list_members(svc: AccountService = Depends(_svc)):
    try:
        return await svc.list_all()
    except SQLAlchemyError as e:
        logger.error("team.list.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error fetching team members.")


@router.post("/members", response_model=RegisterResponse, status_code=201)
async def add_member(
    body: TeamMemberCreate,
    identity: CurrentIdentity = Depends(require_team_manager),
    svc: AccountService = Depends(_svc),
):
    """Create a new account on behalf of the team."""
    try:
        user = await svc.register(
            username=body.username,
            email=body.email,
            password=body.password,
            role=body.role,
        )
    except DuplicateAccountError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("team.add_member.db_error", error=str(e))
        raise HTTPException(status_code=500, detail="Server error adding team member.")

    logger.info("team.member_added", added_by=identity.user_id, user_id=str(user.id))
    return {"message": "Team member added successfully!", "user": user}
